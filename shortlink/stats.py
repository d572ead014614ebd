"""Read-only statistics over the mapping store."""

from datetime import datetime
from typing import List, Optional

from .database.base import MappingStoreBase
from .database.models import MappingAggregate, URLMapping


class StatsAggregator:
    """Aggregate counts and a recent-activity view.

    Never writes to the store.
    """

    def __init__(self, store: MappingStoreBase, recent_limit: int = 10):
        self.store = store
        self.recent_limit = recent_limit

    async def totals(self, now: datetime) -> MappingAggregate:
        return await self.store.aggregate(now)

    async def recent(self, limit: Optional[int] = None) -> List[URLMapping]:
        return await self.store.recent(limit or self.recent_limit)
