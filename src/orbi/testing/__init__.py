"""
Testing utilities for orbi.

Mocks and validators are always importable; the pytest fixtures in
``orbi.testing.fixtures`` need the test extra (``pip install orbi[test]``).

Example:
    from orbi.testing import MockRelayClient, validate_relay_client

    def test_my_client():
        result = validate_relay_client(MockRelayClient())
        assert result.valid
"""

from .mocks import MockConnection, MockRelayClient, MockSigner
from .validators import (
    ProtocolViolationError,
    ValidationResult,
    validate_relay_client,
)

__all__ = [
    "MockConnection",
    "MockRelayClient",
    "MockSigner",
    "ProtocolViolationError",
    "ValidationResult",
    "validate_relay_client",
]
