from types import SimpleNamespace

import pytest

import clinicboost.cache.store as store_mod
from clinicboost.config import reset_settings


class FakeClock:
    """Stand-in for ``time.monotonic`` that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop the settings singleton around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze the cache store's clock. Only the store module sees it, so
    the event loop keeps its real clock."""
    fake = FakeClock()
    monkeypatch.setattr(store_mod, "time", SimpleNamespace(monotonic=fake))
    return fake
