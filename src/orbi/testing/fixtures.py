"""
Pytest fixtures for orbi tests.

Loaded from the root ``conftest.py`` via ``pytest_plugins``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ..core.broadcast import RelayBroadcaster
from ..core.chain import VersionChain
from ..core.chain_store import ChainStore
from ..metrics.metrics import MetricsCollector
from .mocks import MockRelayClient, MockSigner

TEST_RELAYS = (
    "wss://relay-a.test",
    "wss://relay-b.test",
    "wss://relay-c.test",
)


@pytest.fixture
def signer() -> MockSigner:
    return MockSigner()


@pytest.fixture
def relay_client() -> MockRelayClient:
    return MockRelayClient()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector(enabled=False)


@pytest.fixture
def broadcaster(
    relay_client: MockRelayClient, metrics: MetricsCollector
) -> RelayBroadcaster:
    return RelayBroadcaster(
        relay_client, relay_timeout=0.2, deadline_slack=0.1, metrics=metrics
    )


@pytest.fixture
def store(tmp_path: Path) -> ChainStore:
    return ChainStore(tmp_path)


@pytest.fixture
def chain(
    store: ChainStore, signer: MockSigner, broadcaster: RelayBroadcaster
) -> VersionChain:
    return VersionChain(store, signer, broadcaster, TEST_RELAYS)


@pytest.fixture
def draft(tmp_path: Path) -> Path:
    path = tmp_path / "draft.md"
    path.write_text("# Draft\n\nfirst words\n", encoding="utf-8")
    return path
