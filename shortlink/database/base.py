"""Abstract base class for URL mapping store implementations."""

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from ..errors import StoreUnavailableError
from .models import MappingAggregate, URLMapping


class StoreConnectError(Exception):
    """A connection could not be obtained; no statement was sent."""

    pass


def retry_transient(idempotent: bool = True):
    """Retry a store method on transient backend failures.

    Failures to obtain a connection (``StoreConnectError``) are always safe
    to retry because nothing reached the server. Other transient errors are
    retried only for idempotent methods: a dropped connection after an
    ``UPDATE`` may already have committed, and replaying it would count a
    click twice.

    After ``self.max_retries`` retries the failure is raised as
    ``StoreUnavailableError``.

    Args:
        idempotent: Whether the wrapped method can be replayed safely

    Example:
        >>> class Store(MappingStoreBase):
        ...     @retry_transient()
        ...     async def get(self, short_code): ...
    """

    def decorator(method):
        @functools.wraps(method)
        async def wrapper(self, *args, **kwargs):
            retryable = self.transient_errors if idempotent else (StoreConnectError,)
            attempt = 0
            while True:
                try:
                    return await method(self, *args, **kwargs)
                except retryable as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise StoreUnavailableError(
                            f"{method.__name__} failed after {self.max_retries} retries: {e}"
                        ) from e
                    self.logger.warning(
                        f"Transient store error in {method.__name__} "
                        f"(attempt {attempt}/{self.max_retries}): {e}"
                    )
                    await asyncio.sleep(self.retry_backoff_seconds * attempt)
                except self.transient_errors as e:
                    raise StoreUnavailableError(f"{method.__name__} failed: {e}") from e

        return wrapper

    return decorator


class MappingStoreBase(ABC):
    """Abstract base class for URL mapping storage.

    The store is the only shared mutable resource of the service. It alone
    serializes conflicting writes, using atomic primitives of the backend:
    ``insert`` is a conditional write on the short code and
    ``increment_clicks`` is a server-side increment.
    """

    # Exceptions treated as transient by retry_transient
    transient_errors: Tuple[type, ...] = (StoreConnectError,)

    def __init__(
        self,
        max_retries: int = 3,
        retry_backoff_seconds: float = 0.05,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the store.

        Args:
            max_retries: Retries for transient backend failures
            retry_backoff_seconds: Base delay between retries (linear backoff)
            logger: Optional logger instance
        """
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    async def insert(self, mapping: URLMapping) -> None:
        """Persist a new mapping if its short code is free.

        The check and the write are one atomic operation.

        Args:
            mapping: The mapping to persist

        Raises:
            CodeCollisionError: If the short code is already persisted
        """
        pass

    @abstractmethod
    async def get(self, short_code: str) -> URLMapping:
        """Get the mapping for a short code.

        Args:
            short_code: The short code to lookup

        Returns:
            The persisted mapping

        Raises:
            MappingNotFoundError: If no mapping exists
        """
        pass

    @abstractmethod
    async def increment_clicks(self, short_code: str) -> int:
        """Atomically increment the click counter.

        Args:
            short_code: The short code to update

        Returns:
            The click count after the increment

        Raises:
            MappingNotFoundError: If no mapping exists
        """
        pass

    @abstractmethod
    def list_expired(self, now: datetime) -> AsyncIterator[URLMapping]:
        """Iterate lazily over mappings with ``expires_at <= now``.

        Args:
            now: Reference time

        Returns:
            Async iterator of expired mappings, oldest expiry first
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete every mapping with ``expires_at <= now``.

        Args:
            now: Reference time

        Returns:
            Number of mappings removed
        """
        pass

    @abstractmethod
    async def aggregate(self, now: datetime) -> MappingAggregate:
        """Count mappings and clicks in one consistent pass.

        Args:
            now: Reference time separating active from expired

        Returns:
            MappingAggregate with total, active, expired and total_clicks
        """
        pass

    @abstractmethod
    async def recent(self, limit: int = 10) -> List[URLMapping]:
        """List the most recently created mappings, newest first.

        Args:
            limit: Maximum number of mappings to return

        Returns:
            List of mappings
        """
        pass

    @abstractmethod
    async def count_by_domain(self, domain: str) -> int:
        """Count mappings whose original URL points at a domain.

        Args:
            domain: Host name as stored on the mapping

        Returns:
            Number of mappings
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release store resources."""
        pass
