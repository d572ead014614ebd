"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Iterable, List

from httpx import ASGITransport, AsyncClient

from shortlink.config import Config
from shortlink.database.memory import InMemoryMappingStore
from shortlink.service import ShortenerService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.common.logging_config import setup_logging
from web_app import create_app


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class ScriptedGenerator(ShortCodeGenerator):
    """Generator handing out a fixed sequence of codes."""

    def __init__(self, codes: Iterable[str]):
        super().__init__(default_length=7)
        self.codes: List[str] = list(codes)
        self.calls = 0

    def generate(self, length=None) -> str:
        self.calls += 1
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
async def store(logger) -> AsyncGenerator[InMemoryMappingStore, None]:
    """Create in-memory store."""
    store = InMemoryMappingStore(logger=logger)

    yield store

    await store.close()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=7)


@pytest.fixture
def service(store, short_code_generator, logger, clock) -> ShortenerService:
    """Create service instance."""
    return ShortenerService(
        store=store,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        logger=logger,
        base_url="http://testserver",
        clock=clock,
    )


@pytest.fixture
def config():
    """Configuration for the test app."""
    return Config(base_url="http://testserver", storage_backend="memory")


@pytest.fixture
def app(store, service, config):
    """Create test FastAPI app."""
    return create_app(
        store_instance=store,
        cache_instance=None,
        service_instance=service,
        config=config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def scripted_generator():
    """Factory for generators returning a fixed sequence of codes."""
    return ScriptedGenerator


@pytest.fixture
def make_service(store, logger, clock):
    """Factory for services with non-default settings."""

    def _make(**kwargs) -> ShortenerService:
        kwargs.setdefault("store", store)
        kwargs.setdefault("logger", logger)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("base_url", "http://testserver")
        return ShortenerService(**kwargs)

    return _make
