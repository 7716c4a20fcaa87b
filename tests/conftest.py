"""Pytest configuration and fixtures."""

import pytest

from tinyurl.database.fallback import FallbackStore
from tinyurl.database.availability import AvailabilityMonitor, StoreSelector
from tinyurl.shortcode import ShortCodeGenerator
from tinyurl.service import ShorteningService
from tinyurl.resolver import Resolver
from tinyurl.common.logging_config import setup_logging

from helpers import BASE_URL


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def fallback_store(tmp_path, logger) -> FallbackStore:
    """Fallback store writing to a per-test snapshot file."""
    return FallbackStore(tmp_path / "data" / "users.json", logger=logger)


@pytest.fixture
def monitor(logger) -> AvailabilityMonitor:
    return AvailabilityMonitor(logger=logger)


@pytest.fixture
def selector(fallback_store, monitor, logger) -> StoreSelector:
    """Selector with no primary store: everything runs on the fallback."""
    return StoreSelector(None, fallback_store, monitor, logger=logger)


@pytest.fixture
def short_code_generator(logger):
    """Create short code generator."""
    return ShortCodeGenerator(min_length=5, logger=logger)


@pytest.fixture
def service(selector, short_code_generator, logger) -> ShorteningService:
    """Create service instance."""
    return ShorteningService(
        selector,
        base_url=BASE_URL,
        short_code_generator=short_code_generator,
        cache=None,  # No cache for tests
        logger=logger,
    )


@pytest.fixture
async def resolver(selector, logger):
    resolver = Resolver(selector, cache=None, logger=logger)
    yield resolver
    await resolver.drain()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
