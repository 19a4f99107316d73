"""
Root pytest configuration.
"""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest


# Register orbi testing fixtures for all tests
pytest_plugins = ("orbi.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - chain invariants",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests wiring several components together",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take >1 second",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def isolate_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Keep the developer's relay and key configuration out of tests."""
    for key in list(os.environ):
        if key.startswith("ORBI_") or key == "NOSTR_SECRET_PATH":
            monkeypatch.delenv(key, raising=False)
    yield
