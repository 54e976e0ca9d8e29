"""
Pytest configuration and shared fixtures for business_kb_publisher tests.
"""

import os
from unittest.mock import MagicMock

import pytest

from business_kb_publisher.cache import AppCache
from business_kb_publisher.config import Settings, get_settings
from business_kb_publisher.resolution.cache import IdentifierCache
from business_kb_publisher.resolution.resolver import IdentifierResolver
from business_kb_publisher.resolution.sparql import SparqlClient
from fakes import FakeTransportFactory

# Never let a developer's .env turn test runs into real writes
os.environ["ALLOW_PRODUCTION_PUBLISH"] = "false"
os.environ["PUBLISH_DRY_RUN"] = "false"
if not os.getenv("WIKIBASE_BOT_USERNAME"):
    os.environ["WIKIBASE_BOT_USERNAME"] = "TestUser@pytest"
if not os.getenv("WIKIBASE_BOT_PASSWORD"):
    os.environ["WIKIBASE_BOT_PASSWORD"] = "test-bot-password"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """get_settings() is lru_cached; reset it around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path):
    """Settings with bot credentials, no .env file and a temporary cache dir."""
    return Settings(
        _env_file=None,
        bot_username="TestUser@pytest",
        bot_password="test-bot-password",
        cache_dir=tmp_path / "cache",
        allow_production=False,
        dry_run=False,
        retry_backoff_seconds=0.5,
    )


@pytest.fixture
def app_cache(tmp_path):
    """Temporary AppCache, closed after the test."""
    cache = AppCache(tmp_path / "app_cache")
    yield cache
    cache.close()


@pytest.fixture
def qid_cache(app_cache):
    """IdentifierCache on the temporary AppCache."""
    return IdentifierCache(app_cache)


@pytest.fixture
def sparql_lookup():
    """SparqlClient mock that finds nothing unless a test says otherwise."""
    lookup = MagicMock(spec=SparqlClient)
    lookup.lookup.return_value = None
    lookup.validate_identifier.return_value = True
    return lookup


@pytest.fixture
def resolver(qid_cache, sparql_lookup, settings):
    """Resolver with a temporary cache, mocked SPARQL, and no worker thread."""
    resolver = IdentifierResolver(
        cache=qid_cache,
        lookup=sparql_lookup,
        settings=settings,
        background_revalidation=False,
    )
    yield resolver
    resolver.close()


@pytest.fixture
def transport_factory():
    """Empty FakeTransportFactory; tests extend .responses."""
    return FakeTransportFactory()
