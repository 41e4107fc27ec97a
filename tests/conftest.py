"""Test configuration and fixtures."""

import os

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from base_image_resolver import LineageConfig
from tests.fakes import CURATOR, FakeLineageStore, FakeRegistry


@pytest_asyncio.fixture
async def lineage_store():
    """Fake lineage store served on a local port."""
    store = FakeLineageStore()
    server = TestServer(store.application())
    await server.start_server()
    store.server = server
    yield store
    await server.close()


@pytest.fixture
def lineage_config(lineage_store):
    """Lineage configuration pointing at the fake store."""
    server = lineage_store.server
    return LineageConfig(
        tenant_url=str(server.make_url("/datalog/team")),
        shared_url=str(server.make_url("/datalog/shared")),
        index_url=str(server.make_url("/chain-ids")),
        timeout=5,
        tenant_curator=CURATOR,
        shared_curator=CURATOR,
    )


@pytest_asyncio.fixture
async def fake_registry():
    """Fake registry served on a local port."""
    registry = FakeRegistry()
    server = TestServer(registry.application())
    await server.start_server()
    registry.realm = str(server.make_url("/token"))
    registry.server = server
    yield registry
    await server.close()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring network access"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless the network is declared available."""
    skip_integration = pytest.mark.skip(reason="Network not available")

    for item in items:
        if (
            "integration" in item.keywords
            and os.getenv("NETWORK_AVAILABLE", "false").lower() != "true"
        ):
            item.add_marker(skip_integration)
