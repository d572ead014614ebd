"""Click accounting for URL mappings."""

import logging
from typing import Optional

from .database.base import MappingStoreBase


class ClickAccountant:
    """Count dereferences of a mapping.

    Every increment is delegated to the store's atomic server-side
    increment, never computed from a prior read, so concurrent redirects to
    the same code cannot lose updates.
    """

    def __init__(self, store: MappingStoreBase, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    async def increment(self, short_code: str) -> int:
        """Record one click.

        Args:
            short_code: The dereferenced short code

        Returns:
            The click count after this click

        Raises:
            MappingNotFoundError: If the mapping was purged meanwhile
        """
        count = await self.store.increment_clicks(short_code)
        self.logger.debug(f"Click recorded for {short_code}: {count}")
        return count
