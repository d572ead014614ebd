"""In-memory implementation of the URL mapping store.

Atomicity comes from the event loop: each operation yields once (like a real
I/O round trip would) and then runs its read-modify-write section without
any further ``await``, so no other task can interleave with it.

The store is per process. Running uvicorn with more than one worker gives
every worker its own independent store; use the PostgreSQL backend there.
"""

import asyncio
import dataclasses
import logging
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional

from ..errors import CodeCollisionError, MappingNotFoundError
from .base import MappingStoreBase
from .models import MappingAggregate, URLMapping


class InMemoryMappingStore(MappingStoreBase):
    """Dictionary-backed mapping store for tests and single-process runs."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(max_retries=0, logger=logger)
        self._mappings: Dict[str, URLMapping] = {}

    async def insert(self, mapping: URLMapping) -> None:
        await asyncio.sleep(0)
        if mapping.short_code in self._mappings:
            raise CodeCollisionError(f"Short code '{mapping.short_code}' already exists")
        self._mappings[mapping.short_code] = dataclasses.replace(mapping)
        self.logger.debug(f"Inserted mapping {mapping.short_code}")

    async def get(self, short_code: str) -> URLMapping:
        await asyncio.sleep(0)
        mapping = self._mappings.get(short_code)
        if mapping is None:
            raise MappingNotFoundError(f"Short code '{short_code}' not found")
        return dataclasses.replace(mapping)

    async def increment_clicks(self, short_code: str) -> int:
        await asyncio.sleep(0)
        mapping = self._mappings.get(short_code)
        if mapping is None:
            raise MappingNotFoundError(f"Short code '{short_code}' not found")
        mapping.click_count += 1
        return mapping.click_count

    async def list_expired(self, now: datetime) -> AsyncIterator[URLMapping]:
        await asyncio.sleep(0)
        expired = sorted(
            (m for m in self._mappings.values() if m.expires_at <= now),
            key=lambda m: m.expires_at,
        )
        for mapping in expired:
            yield dataclasses.replace(mapping)

    async def delete_expired(self, now: datetime) -> int:
        await asyncio.sleep(0)
        expired = [code for code, m in self._mappings.items() if m.expires_at <= now]
        for code in expired:
            del self._mappings[code]
        return len(expired)

    async def aggregate(self, now: datetime) -> MappingAggregate:
        await asyncio.sleep(0)
        total = active = total_clicks = 0
        for mapping in self._mappings.values():
            total += 1
            total_clicks += mapping.click_count
            if now < mapping.expires_at:
                active += 1
        return MappingAggregate(
            total=total,
            active=active,
            expired=total - active,
            total_clicks=total_clicks,
        )

    async def recent(self, limit: int = 10) -> List[URLMapping]:
        await asyncio.sleep(0)
        newest = sorted(self._mappings.values(), key=lambda m: m.created_at, reverse=True)
        return [dataclasses.replace(m) for m in newest[:limit]]

    async def count_by_domain(self, domain: str) -> int:
        await asyncio.sleep(0)
        return sum(1 for m in self._mappings.values() if m.domain == domain)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._mappings.clear()
