"""Storage backend selection.

Keeps the rest of the service ignorant of where mappings live:

- ``memory``   -> InMemoryMappingStore (single process, tests)
- ``postgres`` -> PostgresMappingStore (asyncpg pool)
"""

import logging
from typing import Optional

from .base import MappingStoreBase
from .memory import InMemoryMappingStore


def create_store(config, logger: Optional[logging.Logger] = None) -> MappingStoreBase:
    """Build the mapping store selected by ``config.storage_backend``.

    Args:
        config: Application configuration
        logger: Optional logger

    Returns:
        MappingStoreBase implementation

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = config.storage_backend.strip().lower()

    if backend == "memory":
        return InMemoryMappingStore(logger=logger)

    if backend == "postgres":
        if not config.database_url:
            raise ValueError("database_url is required for the postgres backend")
        # Local import to avoid pulling asyncpg in for the memory backend
        from .postgres import PostgresMappingStore

        return PostgresMappingStore(
            db_config=config.database_url,
            pool_max_size=config.db_pool_max_size,
            connection_timeout_seconds=config.db_connection_timeout_seconds,
            create_tables=config.db_create_tables,
            max_retries=config.store_max_retries,
            retry_backoff_seconds=config.store_retry_backoff_seconds,
            logger=logger,
        )

    raise ValueError(f"Unknown storage backend: {backend!r}")
