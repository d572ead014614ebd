"""
Command-line interface for the shortlink service.

Usage:
    shortlink-cli init-db
    shortlink-cli shorten <url> [--expires-in-days N] [--custom-code CODE]
    shortlink-cli info <short_code>
    shortlink-cli resolve <short_code>
    shortlink-cli stats
    shortlink-cli cleanup [--include-expired] [--older-than-days N]
    shortlink-cli health

Connection settings come from the environment (see ``shortlink.config``)
and may be overridden with --storage, --database-url and --redis-url.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Optional

from .config import Config, load_config
from .common.logging_config import setup_logging
from .database import create_store
from .database.cache import RedisCache
from .errors import ShortlinkError
from .service import build_service


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _print(payload: dict, stream=None) -> None:
    print(json.dumps(payload, indent=2, default=_json_default), file=stream or sys.stdout)


class ShortlinkCLI:
    """Command-line interface for the shortlink service."""

    def __init__(self, config: Config, verbose: bool = False):
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.store = None
        self.cache = None
        self.service = None

    async def initialize(self):
        """Initialize store, cache and service."""
        self.store = create_store(self.config, logger=self.logger)

        if self.config.redis_url:
            self.cache = RedisCache(
                redis_url=self.config.redis_url,
                ttl_seconds=self.config.cache_ttl_seconds,
                logger=self.logger,
            )
            await self.cache.connect()

        self.service = build_service(self.config, self.store, self.cache, self.logger)

    async def cleanup(self):
        """Release connections."""
        if self.service:
            await self.service.close()

    async def init_db(self) -> int:
        if not hasattr(self.store, "ensure_tables"):
            _print({
                "success": False,
                "error": f"The {self.config.storage_backend} backend needs no schema",
            }, sys.stderr)
            return 1
        await self.store.ensure_tables()
        _print({"success": True, "message": "url_mappings table and indexes are in place"})
        return 0

    async def shorten(self, url: str, expires_in_days: Optional[int], custom_code: Optional[str]) -> int:
        result = await self.service.shorten(
            original_url=url,
            expires_in_days=expires_in_days,
            custom_code=custom_code,
        )
        _print({"success": True, **result})
        return 0

    async def info(self, short_code: str) -> int:
        _print({"success": True, **await self.service.info(short_code)})
        return 0

    async def resolve(self, short_code: str) -> int:
        original_url = await self.service.resolve(short_code)
        _print({"success": True, "short_code": short_code, "original_url": original_url})
        return 0

    async def stats(self) -> int:
        _print({"success": True, **await self.service.stats()})
        return 0

    async def cleanup_expired(self, include_expired: bool, older_than_days: Optional[int]) -> int:
        result = await self.service.cleanup(
            include_expired=include_expired,
            older_than_days=older_than_days,
        )
        _print({"success": True, **result})
        return 0

    async def health(self) -> int:
        health = await self.service.health_check()
        _print({
            "success": health["overall"],
            "database": "healthy" if health["database"] else "unhealthy",
            "cache": "healthy" if health["cache"] else "unhealthy",
        })
        return 0 if health["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlink-cli",
        description="Shortlink service command-line interface",
    )
    parser.add_argument("--storage", choices=["memory", "postgres"], help="Mapping store backend")
    parser.add_argument("--database-url", help="PostgreSQL connection URL")
    parser.add_argument("--redis-url", help="Redis connection URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the url_mappings table and indexes")

    shorten = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten.add_argument("url", help="URL to shorten")
    shorten.add_argument("--expires-in-days", type=int, help="Lifetime in days")
    shorten.add_argument("--custom-code", help="Custom short code")

    info = subparsers.add_parser("info", help="Show a mapping without counting a click")
    info.add_argument("short_code")

    resolve = subparsers.add_parser("resolve", help="Resolve a short code (counts a click)")
    resolve.add_argument("short_code")

    subparsers.add_parser("stats", help="Show service statistics")

    cleanup = subparsers.add_parser("cleanup", help="Purge expired mappings")
    cleanup.add_argument("--include-expired", action="store_true",
                         help="Actually delete expired mappings")
    cleanup.add_argument("--older-than-days", type=int,
                         help="Only purge mappings expired for at least N days")

    subparsers.add_parser("health", help="Check store and cache health")

    return parser


def load_cli_config(args: argparse.Namespace) -> Config:
    """Environment configuration with command-line overrides applied."""
    config = load_config()
    overrides = {}
    if args.storage:
        overrides["storage_backend"] = args.storage
    if args.database_url:
        overrides["database_url"] = args.database_url
        overrides.setdefault("storage_backend", "postgres")
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    return config.model_copy(update=overrides)


async def run(args: argparse.Namespace) -> int:
    cli = ShortlinkCLI(load_cli_config(args), verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "init-db":
            return await cli.init_db()
        elif args.command == "shorten":
            return await cli.shorten(args.url, args.expires_in_days, args.custom_code)
        elif args.command == "info":
            return await cli.info(args.short_code)
        elif args.command == "resolve":
            return await cli.resolve(args.short_code)
        elif args.command == "stats":
            return await cli.stats()
        elif args.command == "cleanup":
            return await cli.cleanup_expired(args.include_expired, args.older_than_days)
        elif args.command == "health":
            return await cli.health()
        return 1

    except ShortlinkError as e:
        _print({"success": False, "error": type(e).__name__, "message": str(e)}, sys.stderr)
        return 1

    finally:
        await cli.cleanup()


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
