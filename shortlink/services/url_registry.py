"""
URL Registry

This service owns the state of the shortener:
- The mapping from shortcode to URLRecord
- The set of every shortcode ever assigned (never reused, even after cleanup)
- Shortcode generation with collision avoidance
- Expiry computation and click recording
- Persistence of the whole state as one blob in a key-value store

Design Decisions:
- Explicit object: built at startup with an injected KeyValueStore and
  handed to request handlers, not a module-level singleton
- One registry-wide asyncio.Lock around every mutation, so "check shortcode
  available" and "assign shortcode" cannot interleave between requests
- Best-effort persistence: storage failures are logged and the in-memory
  state keeps serving
- Callers get copies of records; state only changes through this class
"""

import asyncio
import logging
import random
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shortlink.core.exceptions import (
    InvalidShortcodeError,
    InvalidURLError,
    InvalidValidityError,
    ShortCodeExpiredError,
    ShortCodeNotFoundError,
    ShortcodeTakenError,
)
from shortlink.core.validators import validate_shortcode, validate_url
from shortlink.storage.interface import KeyValueStore

logger = logging.getLogger(__name__)

SHORTCODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
BASE36_CHARS = string.digits + string.ascii_lowercase

FALLBACK_PREFIX = "url"
DEFAULT_SOURCE = "Direct"
DEFAULT_LOCATION = "Unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def encode_base36(number: int) -> str:
    """
    Encode a non-negative integer in base 36 (lowercase).

    Example:
        encode_base36(0) -> "0"
        encode_base36(35) -> "z"
        encode_base36(36) -> "10"
    """
    if number == 0:
        return BASE36_CHARS[0]

    digits = []
    while number > 0:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_CHARS[remainder])
    return "".join(reversed(digits))


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClickEvent(_CamelModel):
    """One resolution of a shortcode to its original URL."""
    timestamp: datetime
    source: str = DEFAULT_SOURCE
    location: str = DEFAULT_LOCATION


class URLRecord(_CamelModel):
    """One shortened URL and its click history."""
    id: str
    original_url: str
    shortcode: str
    short_url: str
    created_at: datetime
    expires_at: datetime
    validity_minutes: int
    click_count: int = 0
    clicks: list[ClickEvent] = Field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class RegistrySnapshot(_CamelModel):
    """
    Persisted layout: three parallel collections stored as ordered
    key/value lists (urls, clickData, usedShortcodes).
    """
    urls: list[tuple[str, URLRecord]] = Field(default_factory=list)
    click_data: list[tuple[str, list[ClickEvent]]] = Field(default_factory=list)
    used_shortcodes: list[str] = Field(default_factory=list)


class URLRegistry:
    """
    Shortcode registry with expiry, click tracking and persistence.

    Args:
        store: Key-value store holding the serialized state
        storage_key: Key under which the state blob is stored
        base_url: Origin used to build short_url (no trailing slash needed)
        default_validity_minutes: Validity used when none is given
        shortcode_length: Length of generated shortcodes
        max_attempts: Random draws before the timestamp fallback
        clock: Returns the current time as an aware UTC datetime
        rng: Random source for shortcode generation
        reserved_shortcodes: Codes that must never be assigned (e.g. fixed
            route names), treated as permanently taken
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = "urlShortenerData",
        base_url: str = "http://localhost:8000",
        default_validity_minutes: int = 30,
        shortcode_length: int = 6,
        max_attempts: int = 100,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        reserved_shortcodes: Iterable[str] = (),
    ):
        self.store = store
        self.storage_key = storage_key
        self.base_url = base_url.rstrip("/")
        self.default_validity_minutes = default_validity_minutes
        self.shortcode_length = shortcode_length
        self.max_attempts = max_attempts
        self.clock = clock
        self._rng = rng or random.SystemRandom()

        self._urls: dict[str, URLRecord] = {}
        self.reserved_shortcodes = frozenset(reserved_shortcodes)
        self._used_shortcodes: set[str] = set(self.reserved_shortcodes)
        self._lock = asyncio.Lock()

    # Validation

    @staticmethod
    def validate_url(url: str) -> bool:
        is_valid = validate_url(url)
        if not is_valid:
            logger.warning(f"Invalid URL format: {url!r}")
        return is_valid

    @staticmethod
    def validate_shortcode(short_code: str) -> bool:
        is_valid = validate_shortcode(short_code)
        if not is_valid:
            logger.warning(f"Invalid shortcode format: {short_code!r}")
        return is_valid

    def is_shortcode_available(self, short_code: str) -> bool:
        """True if the shortcode was never assigned (purged codes stay taken)."""
        return short_code not in self._used_shortcodes

    # Generation

    def generate_shortcode(self) -> str:
        """
        Generate a unique shortcode and reserve it.

        Draws shortcode_length characters uniformly from [A-Za-z0-9], retrying
        on collision up to max_attempts times. If every draw collides, falls
        back to "url" + base36 millisecond timestamp, bumping the timestamp
        until the code is free.

        Returns:
            The reserved shortcode
        """
        for _ in range(self.max_attempts):
            short_code = "".join(
                self._rng.choice(SHORTCODE_ALPHABET) for _ in range(self.shortcode_length)
            )
            if short_code not in self._used_shortcodes:
                break
        else:
            millis = int(self.clock().timestamp() * 1000)
            short_code = FALLBACK_PREFIX + encode_base36(millis)
            while short_code in self._used_shortcodes:
                millis += 1
                short_code = FALLBACK_PREFIX + encode_base36(millis)
            logger.warning(f"Using fallback shortcode generation: {short_code}")

        self._used_shortcodes.add(short_code)
        logger.info(f"Generated new shortcode: {short_code}")
        return short_code

    # Operations

    async def create_short_url(
        self,
        original_url: str,
        validity_minutes: Optional[int] = None,
        custom_shortcode: Optional[str] = None,
    ) -> URLRecord:
        """
        Create a shortened URL.

        Args:
            original_url: The http(s) URL to shorten
            validity_minutes: Positive integer; None means the default (30)
            custom_shortcode: Optional user-chosen shortcode

        Returns:
            Copy of the created URLRecord

        Raises:
            InvalidURLError: If the URL is malformed or not http(s)
            InvalidValidityError: If validity is not a positive integer
            InvalidShortcodeError: If the custom shortcode has a bad format
            ShortcodeTakenError: If the custom shortcode was ever assigned
        """
        logger.info(
            f"Creating short URL: url={original_url!r} "
            f"validity={validity_minutes} custom={custom_shortcode!r}"
        )

        if not self.validate_url(original_url):
            raise InvalidURLError(
                original_url,
                reason="Invalid URL format. Please provide a valid HTTP/HTTPS URL"
            )

        if validity_minutes is None:
            validity_minutes = self.default_validity_minutes
        if (
            isinstance(validity_minutes, bool)
            or not isinstance(validity_minutes, int)
            or validity_minutes <= 0
        ):
            raise InvalidValidityError(validity_minutes)

        async with self._lock:
            if custom_shortcode:
                if not self.validate_shortcode(custom_shortcode):
                    raise InvalidShortcodeError(custom_shortcode)
                if not self.is_shortcode_available(custom_shortcode):
                    logger.warning(f"Shortcode already in use: {custom_shortcode}")
                    raise ShortcodeTakenError(custom_shortcode)
                short_code = custom_shortcode
                self._used_shortcodes.add(short_code)
            else:
                short_code = self.generate_shortcode()

            created_at = self.clock()
            record = URLRecord(
                id=uuid.uuid4().hex,
                original_url=original_url,
                shortcode=short_code,
                short_url=f"{self.base_url}/{short_code}",
                created_at=created_at,
                expires_at=created_at + timedelta(minutes=validity_minutes),
                validity_minutes=validity_minutes,
            )
            self._urls[short_code] = record

            await self.save()

        logger.info(
            f"Short URL created: {short_code} -> {original_url} "
            f"(expires {record.expires_at.isoformat()})"
        )
        return record.model_copy(deep=True)

    async def resolve(
        self,
        short_code: str,
        source: Optional[str] = None,
        location: Optional[str] = None,
    ) -> URLRecord:
        """
        Look up a shortcode and record a click against it.

        Args:
            short_code: Shortcode to resolve
            source: Referrer of the click (defaults to "Direct")
            location: Best-effort location (defaults to "Unknown")

        Returns:
            Copy of the updated URLRecord

        Raises:
            ShortCodeNotFoundError: If never assigned or already purged
            ShortCodeExpiredError: If tracked but past expires_at
        """
        async with self._lock:
            record = self._urls.get(short_code)
            if record is None:
                logger.warning(f"Shortcode not found: {short_code}")
                raise ShortCodeNotFoundError(short_code)

            now = self.clock()
            if record.is_expired(now):
                logger.warning(
                    f"Short URL has expired: {short_code} "
                    f"(expired {record.expires_at.isoformat()}, now {now.isoformat()})"
                )
                raise ShortCodeExpiredError(short_code, expires_at=record.expires_at)

            await self._record_click(short_code, source, location)

            logger.info(f"Resolved {short_code} -> {record.original_url}")
            return record.model_copy(deep=True)

    async def record_click(
        self,
        short_code: str,
        source: Optional[str] = None,
        location: Optional[str] = None,
    ) -> None:
        """Append a click to a tracked shortcode; unknown shortcodes are ignored."""
        async with self._lock:
            await self._record_click(short_code, source, location)

    async def _record_click(self, short_code, source, location) -> None:
        record = self._urls.get(short_code)
        if record is None:
            return

        record.clicks.append(ClickEvent(
            timestamp=self.clock(),
            source=source or DEFAULT_SOURCE,
            location=location or DEFAULT_LOCATION,
        ))
        record.click_count += 1

        await self.save()

        logger.info(f"Click recorded: {short_code} (clicks={record.click_count})")

    def list_all(self) -> list[URLRecord]:
        """Every tracked record, expired or not."""
        records = [record.model_copy(deep=True) for record in self._urls.values()]
        logger.debug(f"Retrieved all URLs: count={len(records)}")
        return records

    def get_stats(self, short_code: str) -> Optional[URLRecord]:
        """Full record with click history, or None if untracked."""
        record = self._urls.get(short_code)
        if record is None:
            return None
        return record.model_copy(deep=True)

    async def cleanup_expired(self) -> int:
        """
        Drop expired records from the live mapping.

        Their shortcodes stay in the assigned set and are never handed out
        again.

        Returns:
            Number of records removed
        """
        async with self._lock:
            now = self.clock()
            expired = [
                short_code for short_code, record in self._urls.items()
                if record.is_expired(now)
            ]
            for short_code in expired:
                del self._urls[short_code]

            if expired:
                await self.save()
                logger.info(f"Cleaned up expired URLs: count={len(expired)}")

        return len(expired)

    # Persistence

    def _snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(
            urls=[
                (short_code, record.model_copy(update={"clicks": []}))
                for short_code, record in self._urls.items()
            ],
            click_data=[
                (short_code, list(record.clicks))
                for short_code, record in self._urls.items()
            ],
            used_shortcodes=sorted(self._used_shortcodes - self.reserved_shortcodes),
        )

    async def save(self) -> None:
        """Write the full state to the store. Failures are logged, not raised."""
        try:
            blob = self._snapshot().model_dump_json(by_alias=True)
            await self.store.put(self.storage_key, blob)
            logger.debug(f"Registry state saved under '{self.storage_key}'")
        except Exception as e:
            logger.error(f"Failed to save registry state: {e}", exc_info=True)

    async def load(self) -> None:
        """
        Replace in-memory state with the stored blob, if any.

        Click histories are re-attached to their records and click_count is
        recomputed from them. A missing blob leaves the state untouched; an
        unreadable or corrupt one is logged and ignored.
        """
        try:
            blob = await self.store.get(self.storage_key)
            if blob is None:
                logger.info(f"No stored registry state under '{self.storage_key}'")
                return
            snapshot = RegistrySnapshot.model_validate_json(blob)
        except Exception as e:
            logger.error(f"Failed to load registry state: {e}", exc_info=True)
            return

        click_data = dict(snapshot.click_data)
        urls = {}
        for short_code, record in snapshot.urls:
            clicks = click_data.get(short_code, [])
            urls[short_code] = record.model_copy(
                update={"clicks": clicks, "click_count": len(clicks)}
            )

        self._urls = urls
        self._used_shortcodes = set(snapshot.used_shortcodes) | set(urls) | self.reserved_shortcodes

        logger.info(
            f"Registry state loaded: urls={len(self._urls)} "
            f"shortcodes={len(self._used_shortcodes)}"
        )
