#!/usr/bin/env python3
"""
Main entry point for the shortlink service.

Concurrency: one event loop per worker serves many connections via async I/O
(FastAPI + asyncpg connection pool + redis.asyncio). Uniqueness and click
counts are enforced by the store, so WORKERS > 1 (one process per worker,
each with its own pool) is safe with the postgres backend. The memory
backend is private to each process.

Usage:
    python app.py

Environment variables:
    STORAGE_BACKEND - 'memory' (default) or 'postgres'
    DATABASE_URL - PostgreSQL connection URL
    DB_CREATE_TABLES - Set to true to create the table and indexes on first use
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    SWEEP_INTERVAL_SECONDS - Background expiry sweep interval (0 disables)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from shortlink.config import Config, load_config
from shortlink import ExpirySweepTask
from shortlink.service import build_service
from shortlink.database import create_store
from shortlink.database.cache import RedisCache
from shortlink.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shortlink service...")

    logger.info(f"Using {config.storage_backend} mapping store")
    store = create_store(config, logger=logger)

    # Initialize cache (optional)
    if config.redis_url:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")
        cache = None

    service = build_service(config, store, cache, logger)

    sweep_task = None
    if config.sweep_interval_seconds > 0:
        sweep_task = ExpirySweepTask(
            service.sweeper,
            interval_seconds=config.sweep_interval_seconds,
            logger=logger,
        )
        sweep_task.start()
    else:
        logger.info("Background expiry sweep disabled")

    app.state.store = store
    app.state.cache = cache
    app.state.service = service

    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down shortlink service...")
        if sweep_task:
            await sweep_task.stop()
        await service.close()
        logger.info("Service stopped")


def create_server_app(config: Optional[Config] = None) -> FastAPI:
    """Build the served app; uvicorn calls this in every worker process."""
    config = config or load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    # Store, cache and service are built in the lifespan
    app = create_app(
        store_instance=None,
        cache_instance=None,
        service_instance=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    config = load_config()
    app = create_server_app(config)
    logger = app.state.logger

    logger.info("Shortlink Service")
    logger.info(f"Configuration: {config.model_dump()}")

    if config.workers > 1:
        # uvicorn only forks workers for an import string; each one rebuilds the app
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "app:create_server_app",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=False,
        )
        return

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
