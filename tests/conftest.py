"""
Shared fixtures for tokenseal tests.
"""

import pytest

from tokenseal import Signer, TimestampSigner


# Fixed "now" used by timestamp tests, in seconds since the Unix epoch.
FIXED_NOW = 1_700_000_000


class FakeClock:
    """Callable clock whose current time can be moved by tests."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def signer():
    """Signer with default settings and a single secret."""
    return Signer("secret-key")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timestamp_signer(signer, clock):
    """TimestampSigner around the default signer, driven by a fake clock."""
    return TimestampSigner(signer, clock=clock)
