"""
Tests for the URL registry: creation, generation, resolution, expiry,
click recording and cleanup.
"""

import random
import re
from datetime import timedelta

import pytest

from shortlink.core.exceptions import (
    InvalidShortcodeError,
    InvalidURLError,
    InvalidValidityError,
    ShortCodeExpiredError,
    ShortCodeNotFoundError,
    ShortcodeTakenError,
)
from shortlink.services.url_registry import encode_base36

ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]+$")


class FixedRandom(random.Random):
    """Always draws the same character."""

    def choice(self, seq):
        return seq[0]


class TestBase36Encoding:

    def test_encode_base36(self):
        assert encode_base36(0) == "0"
        assert encode_base36(35) == "z"
        assert encode_base36(36) == "10"
        assert encode_base36(1767268800000) == "mjve7pc0"


class TestCreateShortURL:

    @pytest.mark.asyncio
    async def test_create_with_defaults(self, registry, clock):
        record = await registry.create_short_url("https://example.com")

        assert record.original_url == "https://example.com"
        assert len(record.shortcode) == 6
        assert ALPHANUMERIC.match(record.shortcode)
        assert record.short_url == f"http://short.test/{record.shortcode}"
        assert record.created_at == clock.now
        assert record.expires_at == clock.now + timedelta(minutes=30)
        assert record.validity_minutes == 30
        assert record.click_count == 0
        assert record.clicks == []

    @pytest.mark.asyncio
    async def test_custom_validity_and_shortcode(self, registry, clock):
        record = await registry.create_short_url("http://example.com/a", 90, "promo2026")

        assert record.shortcode == "promo2026"
        assert record.expires_at - record.created_at == timedelta(minutes=90)

    @pytest.mark.asyncio
    async def test_distinct_calls_produce_distinct_records(self, registry):
        first = await registry.create_short_url("https://example.com")
        second = await registry.create_short_url("https://example.com")

        assert first.id != second.id
        assert first.shortcode != second.shortcode

    @pytest.mark.asyncio
    async def test_generated_shortcodes_are_unique(self, registry):
        codes = set()
        for i in range(200):
            record = await registry.create_short_url(f"https://example.com/{i}")
            codes.add(record.shortcode)

        assert len(codes) == 200

    @pytest.mark.asyncio
    async def test_invalid_url(self, registry):
        for url in ["example.com", "ftp://example.com", "", "http://"]:
            with pytest.raises(InvalidURLError):
                await registry.create_short_url(url)
        assert registry.list_all() == []

    @pytest.mark.asyncio
    async def test_invalid_validity(self, registry):
        for validity in [0, -5, 1.5, "30", True]:
            with pytest.raises(InvalidValidityError):
                await registry.create_short_url("https://example.com", validity)

    @pytest.mark.asyncio
    async def test_invalid_custom_shortcode(self, registry):
        for code in ["ab", "has-dash", "x" * 21]:
            with pytest.raises(InvalidShortcodeError):
                await registry.create_short_url("https://example.com", 30, code)

    @pytest.mark.asyncio
    async def test_errors_are_checked_in_order(self, registry):
        await registry.create_short_url("https://example.com", 30, "abc")

        with pytest.raises(InvalidURLError):
            await registry.create_short_url("bad", 0, "abc")
        with pytest.raises(InvalidValidityError):
            await registry.create_short_url("https://example.com", 0, "abc")
        with pytest.raises(ShortcodeTakenError):
            await registry.create_short_url("https://example.com", 30, "abc")

    @pytest.mark.asyncio
    async def test_custom_shortcode_taken(self, registry):
        await registry.create_short_url("https://example.com", 30, "abc")

        with pytest.raises(ShortcodeTakenError):
            await registry.create_short_url("https://other.example.com", 30, "abc")

    @pytest.mark.asyncio
    async def test_empty_custom_shortcode_generates_one(self, registry):
        record = await registry.create_short_url("https://example.com", 30, "")
        assert len(record.shortcode) == 6

    @pytest.mark.asyncio
    async def test_returned_record_is_a_copy(self, registry):
        record = await registry.create_short_url("https://example.com")
        record.original_url = "https://evil.example.com"
        record.click_count = 99

        stored = registry.get_stats(record.shortcode)
        assert stored.original_url == "https://example.com"
        assert stored.click_count == 0


class TestGenerateShortcode:

    def test_generated_code_is_reserved(self, registry):
        code = registry.generate_shortcode()

        assert len(code) == 6
        assert ALPHANUMERIC.match(code)
        assert not registry.is_shortcode_available(code)

    def test_collision_retries(self, make_registry):
        registry = make_registry(rng=random.Random(7))
        first = registry.generate_shortcode()

        # Same seed replays the same draws, so the first draw collides
        registry._rng = random.Random(7)
        second = registry.generate_shortcode()

        assert second != first

    def test_fallback_after_exhausted_attempts(self, make_registry, clock):
        registry = make_registry(rng=FixedRandom(), max_attempts=5)
        first = registry.generate_shortcode()
        assert first == "AAAAAA"

        fallback = registry.generate_shortcode()
        millis = int(clock.now.timestamp() * 1000)
        assert fallback == "url" + encode_base36(millis)
        assert registry.validate_shortcode(fallback)

        # Same clock reading: the fallback is bumped instead of reused
        another = registry.generate_shortcode()
        assert another == "url" + encode_base36(millis + 1)


class TestResolve:

    @pytest.mark.asyncio
    async def test_end_to_end_click_counting(self, registry):
        record = await registry.create_short_url("https://example.com", 30)

        resolved = await registry.resolve(record.shortcode)
        assert resolved.original_url == "https://example.com"
        assert resolved.click_count == 1

        resolved = await registry.resolve(record.shortcode)
        assert resolved.click_count == 2
        assert len(resolved.clicks) == 2

    @pytest.mark.asyncio
    async def test_click_event_fields(self, registry, clock):
        record = await registry.create_short_url("https://example.com")

        clock.advance(minutes=1)
        await registry.resolve(record.shortcode)
        clock.advance(minutes=1)
        await registry.resolve(record.shortcode, source="https://news.example.org/", location="NL")

        clicks = registry.get_stats(record.shortcode).clicks
        assert clicks[0].source == "Direct"
        assert clicks[0].location == "Unknown"
        assert clicks[1].source == "https://news.example.org/"
        assert clicks[1].location == "NL"
        assert clicks[0].timestamp < clicks[1].timestamp

    @pytest.mark.asyncio
    async def test_unknown_shortcode(self, registry):
        with pytest.raises(ShortCodeNotFoundError):
            await registry.resolve("nothere")

    @pytest.mark.asyncio
    async def test_expiry_boundary(self, registry, clock):
        record = await registry.create_short_url("https://example.com", 10)

        clock.advance(minutes=10)
        resolved = await registry.resolve(record.shortcode)
        assert resolved.click_count == 1

        clock.advance(microseconds=1)
        with pytest.raises(ShortCodeExpiredError):
            await registry.resolve(record.shortcode)

        assert registry.get_stats(record.shortcode).click_count == 1

    @pytest.mark.asyncio
    async def test_record_click_ignores_unknown(self, registry):
        await registry.record_click("nothere")
        assert registry.get_stats("nothere") is None

    @pytest.mark.asyncio
    async def test_record_click_keeps_count_in_sync(self, registry):
        record = await registry.create_short_url("https://example.com")
        await registry.record_click(record.shortcode, source="https://a.example")

        stats = registry.get_stats(record.shortcode)
        assert stats.click_count == len(stats.clicks) == 1


class TestListAndStats:

    @pytest.mark.asyncio
    async def test_list_all_includes_expired(self, registry, clock):
        await registry.create_short_url("https://example.com/short", 1)
        await registry.create_short_url("https://example.com/long", 60)

        clock.advance(minutes=5)
        urls = {record.original_url for record in registry.list_all()}
        assert urls == {"https://example.com/short", "https://example.com/long"}

    def test_get_stats_untracked(self, registry):
        assert registry.get_stats("abc") is None


class TestCleanupExpired:

    @pytest.mark.asyncio
    async def test_removes_exactly_expired_records(self, registry, clock):
        short = await registry.create_short_url("https://example.com/short", 5, "short1")
        long = await registry.create_short_url("https://example.com/long", 60, "long1")

        clock.advance(minutes=5)
        assert await registry.cleanup_expired() == 0

        clock.advance(minutes=1)
        assert await registry.cleanup_expired() == 1

        remaining = [record.shortcode for record in registry.list_all()]
        assert remaining == [long.shortcode]
        assert registry.get_stats(short.shortcode) is None

    @pytest.mark.asyncio
    async def test_purged_shortcode_stays_reserved(self, registry, clock):
        await registry.create_short_url("https://example.com", 1, "abc")

        clock.advance(minutes=2)
        await registry.cleanup_expired()

        assert not registry.is_shortcode_available("abc")
        with pytest.raises(ShortcodeTakenError):
            await registry.create_short_url("https://example.com", 30, "abc")
        with pytest.raises(ShortCodeNotFoundError):
            await registry.resolve("abc")


class TestReservedShortcodes:

    @pytest.mark.asyncio
    async def test_reserved_custom_shortcode_is_taken(self, make_registry):
        registry = make_registry(reserved_shortcodes=["stats", "health"])

        assert not registry.is_shortcode_available("stats")
        with pytest.raises(ShortcodeTakenError):
            await registry.create_short_url("https://example.com", 30, "health")

    def test_generation_skips_reserved(self, make_registry):
        registry = make_registry(rng=FixedRandom(), max_attempts=3, reserved_shortcodes=["AAAAAA"])

        code = registry.generate_shortcode()
        assert code != "AAAAAA"
        assert code.startswith("url")
