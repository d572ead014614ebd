"""Business logic service for the URL shortener."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .clicks import ClickAccountant
from .cleanup import CleanupSweeper
from .common.links import short_url
from .common.validators import RESERVED_CODES, extract_domain, is_valid_short_code, is_valid_url
from .database.base import MappingStoreBase
from .database.cache import RedisCache
from .database.models import URLMapping
from .errors import (
    CodeCollisionError,
    CodeTakenError,
    GenerationExhaustedError,
    InvalidShortCodeError,
    InvalidURLError,
    MappingExpiredError,
    MappingNotFoundError,
    OperationTimeoutError,
)
from .expiry import ExpiryPolicy, utc_now
from .shortcode import ShortCodeGenerator
from .stats import StatsAggregator


class ShortenerService:
    """Service layer orchestrating the mapping lifecycle.

    Every public operation takes an optional ``timeout`` in seconds. When it
    is omitted the service-wide ``operation_timeout`` applies (``None``
    means no deadline). Exceeding it raises ``OperationTimeoutError``.
    """

    def __init__(
        self,
        store: MappingStoreBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        expiry_policy: Optional[ExpiryPolicy] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_codes: bool = True,
        max_collision_retries: int = 5,
        base_url: str = "http://localhost:9200",
        path_prefix: str = "",
        recent_limit: int = 10,
        operation_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize URL shortener service.

        Args:
            store: Mapping store
            cache: Optional cache instance
            short_code_generator: Optional short code generator
            expiry_policy: Optional expiry policy (7 day default lifetime)
            logger: Optional logger
            enable_custom_codes: Whether to allow custom short codes
            max_collision_retries: Retries with a fresh code after a collision
            base_url: Default base URL of public short links
            path_prefix: Path prefix of public short links
            recent_limit: Size of the recent mappings view in stats
            operation_timeout: Default deadline for operations, in seconds
            clock: Source of the current (tz-aware UTC) time
        """
        self.store = store
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.expiry = expiry_policy or ExpiryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self.enable_custom_codes = enable_custom_codes
        self.max_collision_retries = max_collision_retries
        self.base_url = base_url
        self.path_prefix = path_prefix
        self.operation_timeout = operation_timeout
        self.clock = clock

        self.clicks = ClickAccountant(store, logger=self.logger)
        self.sweeper = CleanupSweeper(store, logger=self.logger)
        self.stats_aggregator = StatsAggregator(store, recent_limit=recent_limit)

    @asynccontextmanager
    async def _deadline(self, operation: str, timeout: Optional[float]):
        """Bound an operation (including all its retries) by a deadline."""
        budget = self.operation_timeout if timeout is None else timeout
        deadline = asyncio.timeout(budget)
        try:
            async with deadline:
                yield
        except TimeoutError as e:
            if deadline.expired():
                self.logger.warning(f"{operation} timed out after {budget}s")
                raise OperationTimeoutError(f"{operation} did not finish within {budget}s") from e
            raise

    async def shorten(
        self,
        original_url: str,
        expires_in_days: Optional[int] = None,
        custom_code: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Create a new short URL.

        Args:
            original_url: The original long URL
            expires_in_days: Requested lifetime (default lifetime if omitted or out of range)
            custom_code: Optional custom short code
            base_url: Public base URL (configured base URL if omitted)
            timeout: Deadline in seconds

        Returns:
            Dictionary with short_code, short_url, original_url, created_at, expires_at

        Raises:
            InvalidURLError: If the URL fails validation
            InvalidShortCodeError: If the custom code is malformed or disabled
            CodeTakenError: If the custom code already exists
            GenerationExhaustedError: If every generated code collided
            OperationTimeoutError: If the deadline passed
        """
        is_valid, error = is_valid_url(original_url)
        if not is_valid:
            raise InvalidURLError(f"Invalid URL: {error}")

        if custom_code:
            if not self.enable_custom_codes:
                raise InvalidShortCodeError("Custom short codes are not enabled")
            is_valid, error = is_valid_short_code(custom_code)
            if not is_valid:
                raise InvalidShortCodeError(f"Invalid short code: {error}")

        lifetime = self.expiry.resolve_lifetime(expires_in_days)

        async with self._deadline("shorten", timeout):
            if custom_code:
                mapping = self._new_mapping(custom_code, original_url, lifetime)
                try:
                    await self.store.insert(mapping)
                except CodeCollisionError as e:
                    raise CodeTakenError(f"Short code '{custom_code}' already exists") from e
            else:
                mapping = await self._insert_with_fresh_code(original_url, lifetime)

            if self.cache:
                await self.cache.set_mapping(mapping, self.clock())

        link = short_url(
            short_code=mapping.short_code,
            base_url=base_url or self.base_url,
            path_prefix=self.path_prefix,
        )
        self.logger.info(f"Created short URL: {link} -> {original_url}")

        return {
            "short_code": mapping.short_code,
            "short_url": link,
            "original_url": mapping.original_url,
            "created_at": mapping.created_at,
            "expires_at": mapping.expires_at,
        }

    async def resolve(self, short_code: str, timeout: Optional[float] = None) -> str:
        """Resolve a short code for redirection and count the click.

        Args:
            short_code: The short code to resolve
            timeout: Deadline in seconds

        Returns:
            The original URL

        Raises:
            MappingNotFoundError: If the code is unknown (or was just purged)
            MappingExpiredError: If the mapping is past its expiry
            OperationTimeoutError: If the deadline passed
        """
        async with self._deadline("resolve", timeout):
            mapping = await self._lookup(short_code)

            if not self.expiry.is_live(mapping, self.clock()):
                self.logger.warning(f"Short code has expired: {short_code}")
                raise MappingExpiredError(f"Short code '{short_code}' has expired")

            try:
                await self.clicks.increment(short_code)
            except MappingNotFoundError:
                # Purged between lookup and increment
                if self.cache:
                    await self.cache.delete(short_code)
                raise

        self.logger.debug(f"Resolved {short_code} -> {mapping.original_url}")
        return mapping.original_url

    async def info(self, short_code: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Get complete information about a short URL without counting a click.

        Args:
            short_code: The short code to lookup
            timeout: Deadline in seconds

        Returns:
            Dictionary with the mapping fields plus is_active

        Raises:
            MappingNotFoundError: If the code is unknown
            OperationTimeoutError: If the deadline passed
        """
        async with self._deadline("info", timeout):
            mapping = await self.store.get(short_code)
        return self._view(mapping, self.clock())

    async def stats(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Get service-wide statistics.

        Returns:
            Dictionary with total_urls, total_clicks, active_urls,
            expired_urls and recent_urls
        """
        async with self._deadline("stats", timeout):
            now = self.clock()
            totals = await self.stats_aggregator.totals(now)
            recent = await self.stats_aggregator.recent()

        return {
            "total_urls": totals.total,
            "total_clicks": totals.total_clicks,
            "active_urls": totals.active,
            "expired_urls": totals.expired,
            "recent_urls": [self._view(m, now) for m in recent],
        }

    async def cleanup(
        self,
        include_expired: bool = False,
        older_than_days: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Purge expired mappings.

        Nothing is deleted unless ``include_expired`` is set, so the
        operation is safe to call blindly.

        Args:
            include_expired: Actually delete expired mappings
            older_than_days: Only purge mappings expired for at least this many days
            timeout: Deadline in seconds

        Returns:
            Dictionary with deleted_count and message
        """
        if not include_expired:
            self.logger.info("Cleanup requested without include_expired; nothing deleted")
            return {
                "deleted_count": 0,
                "message": "Nothing deleted: include_expired was not set",
            }

        async with self._deadline("cleanup", timeout):
            cutoff = self.sweeper.cutoff(self.clock(), older_than_days)
            deleted = await self.sweeper.sweep(cutoff)

        return {
            "deleted_count": deleted,
            "message": "Cleanup completed successfully",
        }

    async def count_by_domain(self, domain: str, timeout: Optional[float] = None) -> int:
        """Count mappings pointing at a domain."""
        async with self._deadline("count_by_domain", timeout):
            return await self.store.count_by_domain(domain.lower())

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.store.health_check()
        cache_healthy = await self.cache.ping() if self.cache else True

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def _insert_with_fresh_code(self, original_url: str, lifetime: timedelta) -> URLMapping:
        """Generate, try to insert, and regenerate on collision.

        The store's conditional insert is the only uniqueness check; there is
        no existence pre-check to race against.

        Raises:
            GenerationExhaustedError: If every attempt collided
        """
        attempts = self.max_collision_retries + 1

        for attempt in range(1, attempts + 1):
            code = self.generator.generate()
            if code.lower() in RESERVED_CODES:
                continue

            mapping = self._new_mapping(code, original_url, lifetime)
            try:
                await self.store.insert(mapping)
            except CodeCollisionError:
                self.logger.debug(f"Collision on {code} (attempt {attempt}/{attempts})")
                continue

            if attempt > 1:
                self.logger.info(f"Generated code after {attempt} attempts: {code}")
            return mapping

        self.logger.error(
            f"Unable to generate a unique short code after {attempts} attempts "
            f"(keyspace {self.generator.keyspace()})"
        )
        raise GenerationExhaustedError(
            f"Unable to generate unique short code after {attempts} attempts"
        )

    async def _lookup(self, short_code: str) -> URLMapping:
        """Fetch a mapping, read-through the cache when one is configured."""
        if self.cache:
            cached = await self.cache.get_mapping(short_code)
            if cached:
                self.logger.debug(f"Cache hit for {short_code}")
                return cached

        try:
            mapping = await self.store.get(short_code)
        except MappingNotFoundError:
            self.logger.warning(f"Short code not found: {short_code}")
            raise

        if self.cache:
            await self.cache.set_mapping(mapping, self.clock())
        return mapping

    def _new_mapping(self, short_code: str, original_url: str, lifetime: timedelta) -> URLMapping:
        created_at = self.clock()
        return URLMapping(
            short_code=short_code,
            original_url=original_url,
            domain=extract_domain(original_url),
            created_at=created_at,
            expires_at=self.expiry.expires_at_for(created_at, lifetime),
            click_count=0,
        )

    def _view(self, mapping: URLMapping, now: datetime) -> Dict[str, Any]:
        return {
            "short_code": mapping.short_code,
            "original_url": mapping.original_url,
            "domain": mapping.domain,
            "created_at": mapping.created_at,
            "expires_at": mapping.expires_at,
            "click_count": mapping.click_count,
            "is_active": self.expiry.is_live(mapping, now),
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()


def build_service(config, store: MappingStoreBase, cache: Optional[RedisCache] = None,
                  logger: Optional[logging.Logger] = None) -> ShortenerService:
    """Wire a ShortenerService from application configuration."""
    return ShortenerService(
        store=store,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        expiry_policy=ExpiryPolicy(
            default_days=config.default_expiry_days,
            max_days=config.max_expiry_days,
        ),
        logger=logger,
        enable_custom_codes=config.enable_custom_codes,
        max_collision_retries=config.max_collision_retries,
        base_url=config.base_url,
        path_prefix=config.path_prefix,
        recent_limit=config.recent_urls_limit,
        operation_timeout=config.operation_timeout_seconds,
    )
