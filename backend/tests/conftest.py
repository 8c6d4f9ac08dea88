import pytest

from urlsigner.signer import TokenSigner

SECRET = "test-secret-0123456789abcdef0123456789abcdef"
NOW = 1_700_000_000


class FrozenClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def signer(clock):
    return TokenSigner(SECRET, clock=clock)
