"""Removal of expired URL mappings.

Two mechanisms reach the same terminal (purged) state:

- ``CleanupSweeper.sweep`` run on demand by the cleanup operation;
- ``ExpirySweepTask`` running the same sweep on a fixed interval.
"""

import asyncio
import logging
from contextlib import aclosing
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .database.base import MappingStoreBase
from .database.models import URLMapping
from .errors import StoreUnavailableError
from .expiry import utc_now


class CleanupSweeper:
    """Purge mappings past their expiry."""

    def __init__(self, store: MappingStoreBase, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def cutoff(now: datetime, older_than_days: Optional[int] = None) -> datetime:
        """Expiry cutoff: mappings expired at or before it are purged.

        Args:
            now: Current time
            older_than_days: Only purge mappings expired for at least this long

        Returns:
            Cutoff timestamp
        """
        if not older_than_days or older_than_days <= 0:
            return now
        try:
            return now - timedelta(days=older_than_days)
        except OverflowError:
            # Older than the calendar allows: nothing is that old
            return datetime.min.replace(tzinfo=timezone.utc)

    async def preview(self, now: datetime, limit: Optional[int] = None) -> List[URLMapping]:
        """List mappings a sweep at ``now`` would purge, oldest expiry first."""
        expired = []
        async with aclosing(self.store.list_expired(now)) as mappings:
            async for mapping in mappings:
                expired.append(mapping)
                if limit is not None and len(expired) >= limit:
                    break
        return expired

    async def sweep(self, now: datetime) -> int:
        """Delete every mapping with ``expires_at <= now``.

        Args:
            now: Cutoff time

        Returns:
            Number of mappings purged
        """
        deleted = await self.store.delete_expired(now)
        if deleted:
            self.logger.info(f"Purged {deleted} expired mappings (cutoff {now.isoformat()})")
        else:
            self.logger.debug(f"No expired mappings to purge (cutoff {now.isoformat()})")
        return deleted


class ExpirySweepTask:
    """Background task running ``CleanupSweeper.sweep`` periodically."""

    def __init__(
        self,
        sweeper: CleanupSweeper,
        interval_seconds: float,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the sweep task.

        Args:
            sweeper: Sweeper to run
            interval_seconds: Delay between sweeps
            clock: Source of the current time
            logger: Optional logger instance
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.sweeper = sweeper
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None
        self.total_purged = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sweeping on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-sweep")
        self.logger.info(f"Expiry sweep started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop sweeping and wait for the task to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Expiry sweep stopped")

    async def run_once(self) -> int:
        """Run one sweep; a store outage is logged and retried next round."""
        try:
            deleted = await self.sweeper.sweep(self.clock())
        except StoreUnavailableError as e:
            self.logger.error(f"Expiry sweep failed: {e}")
            return 0
        self.total_purged += deleted
        return deleted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
