"""Tests for the periodic expiry cleanup task."""

import asyncio

import pytest

from shortlink.services.cleanup_task import ExpiryCleanupTask


class TestExpiryCleanupTask:

    @pytest.mark.asyncio
    async def test_run_once(self, registry, clock):
        await registry.create_short_url("https://example.com", 1, "old1")
        clock.advance(minutes=2)

        task = ExpiryCleanupTask(registry, interval_seconds=300)
        assert await task.run_once() == 1
        assert registry.list_all() == []

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self, registry, clock):
        await registry.create_short_url("https://example.com", 1, "old1")
        await registry.create_short_url("https://example.com", 60, "new1")
        clock.advance(minutes=2)

        task = ExpiryCleanupTask(registry, interval_seconds=0.01)
        task.start()
        assert task.running
        await asyncio.sleep(0.1)
        await task.stop()

        assert not task.running
        assert [r.shortcode for r in registry.list_all()] == ["new1"]

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self, registry):
        task = ExpiryCleanupTask(registry, interval_seconds=3600)
        task.start()
        await asyncio.sleep(0)

        await asyncio.wait_for(task.stop(), timeout=1)
        assert not task.running

    @pytest.mark.asyncio
    async def test_failed_pass_keeps_running(self, registry, caplog):
        calls = []

        async def flaky_cleanup():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        registry.cleanup_expired = flaky_cleanup

        task = ExpiryCleanupTask(registry, interval_seconds=0.01)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert len(calls) >= 2
        assert "Expiry cleanup pass failed" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_without_start(self, registry):
        await ExpiryCleanupTask(registry).stop()
