"""Tests for expiry cleanup."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone

from shortlink.cleanup import CleanupSweeper, ExpirySweepTask
from shortlink.database.memory import InMemoryMappingStore
from shortlink.errors import MappingExpiredError, MappingNotFoundError, StoreUnavailableError


class FailingStore(InMemoryMappingStore):
    async def delete_expired(self, now):
        raise StoreUnavailableError("delete_expired failed after 3 retries")


@pytest.mark.asyncio
class TestCleanup:
    """Test on-demand cleanup through the service."""

    async def test_zero_lifetime_mapping_lifecycle(self, service, clock, sample_urls):
        """Expired immediately, counted by stats until purged, then gone."""
        result = await service.shorten(sample_urls[0], expires_in_days=0)
        assert result["expires_at"] > result["created_at"]
        clock.advance(seconds=1)

        info = await service.info(result["short_code"])
        assert info["is_active"] is False
        with pytest.raises(MappingExpiredError):
            await service.resolve(result["short_code"])

        stats = await service.stats()
        assert stats["total_urls"] == 1
        assert stats["expired_urls"] == 1

        cleaned = await service.cleanup(include_expired=True)
        assert cleaned["deleted_count"] == 1

        stats = await service.stats()
        assert stats["total_urls"] == 0
        with pytest.raises(MappingNotFoundError):
            await service.resolve(result["short_code"])

    async def test_cleanup_without_include_expired_deletes_nothing(self, service, clock, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=0)
        clock.advance(days=1)

        result = await service.cleanup()

        assert result["deleted_count"] == 0
        assert "include_expired" in result["message"]
        assert (await service.stats())["total_urls"] == 1

    async def test_cleanup_is_idempotent(self, service, clock, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=1)
        await service.shorten(sample_urls[1])
        clock.advance(days=2)

        first = await service.cleanup(include_expired=True)
        second = await service.cleanup(include_expired=True)

        assert first["deleted_count"] == 1
        assert second["deleted_count"] == 0
        assert (await service.stats())["active_urls"] == 1

    async def test_older_than_days(self, service, clock, sample_urls):
        """Only mappings expired for at least N days are purged."""
        old = await service.shorten(sample_urls[0], expires_in_days=1)
        clock.advance(days=9)
        recent = await service.shorten(sample_urls[1], expires_in_days=1)
        clock.advance(days=2)

        result = await service.cleanup(include_expired=True, older_than_days=5)

        assert result["deleted_count"] == 1
        with pytest.raises(MappingNotFoundError):
            await service.info(old["short_code"])
        assert (await service.info(recent["short_code"]))["is_active"] is False

    async def test_purged_code_can_be_reissued(self, service, clock, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=0, custom_code="reuse12")
        clock.advance(seconds=1)
        await service.cleanup(include_expired=True)

        result = await service.shorten(sample_urls[1], custom_code="reuse12")

        assert result["short_code"] == "reuse12"
        assert await service.resolve("reuse12") == sample_urls[1]

    async def test_generator_can_reissue_purged_code(self, make_service, scripted_generator, clock, sample_urls):
        service = make_service(short_code_generator=scripted_generator(["again12"]))
        await service.shorten(sample_urls[0], expires_in_days=0)
        clock.advance(seconds=1)
        await service.cleanup(include_expired=True)

        result = await service.shorten(sample_urls[1])

        assert result["short_code"] == "again12"
        assert await service.resolve("again12") == sample_urls[1]

    async def test_older_than_days_beyond_calendar(self, service, clock, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=0)
        clock.advance(days=1)

        result = await service.cleanup(include_expired=True, older_than_days=1_000_000)

        assert result["deleted_count"] == 0

    async def test_store_failure_surfaces(self, make_service, logger, clock):
        service = make_service(store=FailingStore(logger=logger))

        with pytest.raises(StoreUnavailableError):
            await service.cleanup(include_expired=True)


@pytest.mark.asyncio
class TestCleanupSweeper:
    """Test the sweeper directly."""

    async def test_cutoff(self, clock):
        now = clock()

        assert CleanupSweeper.cutoff(now) == now
        assert CleanupSweeper.cutoff(now, 0) == now
        assert CleanupSweeper.cutoff(now, 3) == now - timedelta(days=3)
        assert CleanupSweeper.cutoff(now, 1_000_000) == datetime.min.replace(tzinfo=timezone.utc)

    async def test_preview(self, service, store, clock, sample_urls):
        first = await service.shorten(sample_urls[0], expires_in_days=1)
        second = await service.shorten(sample_urls[1], expires_in_days=2)
        await service.shorten(sample_urls[2], expires_in_days=30)
        clock.advance(days=3)

        sweeper = CleanupSweeper(store)
        expired = await sweeper.preview(clock())

        assert [m.short_code for m in expired] == [first["short_code"], second["short_code"]]
        assert len(await sweeper.preview(clock(), limit=1)) == 1
        assert (await store.aggregate(clock())).total == 3


@pytest.mark.asyncio
class TestExpirySweepTask:
    """Test the background sweep."""

    async def test_run_once(self, service, store, clock, logger, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=1)
        await service.shorten(sample_urls[1], expires_in_days=1)
        clock.advance(days=1)

        task = ExpirySweepTask(CleanupSweeper(store), interval_seconds=60, clock=clock, logger=logger)

        assert await task.run_once() == 2
        assert await task.run_once() == 0
        assert task.total_purged == 2

    async def test_background_sweep(self, service, store, clock, logger, sample_urls):
        await service.shorten(sample_urls[0], expires_in_days=0)
        clock.advance(seconds=1)

        task = ExpirySweepTask(CleanupSweeper(store), interval_seconds=0.01, clock=clock, logger=logger)
        task.start()
        assert task.running

        for _ in range(100):
            await asyncio.sleep(0.01)
            if task.total_purged:
                break

        await task.stop()

        assert not task.running
        assert task.total_purged == 1
        assert (await store.aggregate(clock())).total == 0

    async def test_store_outage_does_not_stop_sweeping(self, clock, logger):
        task = ExpirySweepTask(
            CleanupSweeper(FailingStore(logger=logger)), interval_seconds=60, clock=clock, logger=logger
        )

        assert await task.run_once() == 0

    async def test_stop_before_start(self, store):
        task = ExpirySweepTask(CleanupSweeper(store), interval_seconds=60)

        await task.stop()

        assert not task.running

    @pytest.mark.parametrize("interval", [0, -1])
    async def test_invalid_interval(self, store, interval):
        with pytest.raises(ValueError):
            ExpirySweepTask(CleanupSweeper(store), interval_seconds=interval)
