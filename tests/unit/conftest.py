"""
Unit test fixtures. Pure core objects and the in-memory store; no DB, no HTTP.
"""
from datetime import datetime, timedelta, timezone

import pytest

from infra.progress.local_store import LocalProgressStore
from progression.errors import StoreUnavailable
from progression.store import ProgressStore, Snapshot
from progression.sync import ProgressSync


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore(ProgressStore):
    """In-memory store that can be switched offline."""

    def __init__(self):
        self.inner = LocalProgressStore()
        self.offline = False
        self.saves = 0

    def load(self, user_id, course_code):
        if self.offline:
            raise StoreUnavailable("offline")
        return self.inner.load(user_id, course_code)

    def save(self, user_id, course_code, snapshot):
        if self.offline:
            raise StoreUnavailable("offline")
        self.saves += 1
        self.inner.save(user_id, course_code, snapshot)

    def reset(self, user_id, course_code):
        if self.offline:
            raise StoreUnavailable("offline")
        self.inner.reset(user_id, course_code)


class SteppingNow:
    """Wall clock for sessions: every call is one second later than the last."""

    def __init__(self):
        self.current = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def sync(store, clock) -> ProgressSync:
    return ProgressSync(store=store, debounce_seconds=2.0, clock=clock)


@pytest.fixture
def now() -> SteppingNow:
    return SteppingNow()


@pytest.fixture
def snap_at():
    """Factory fixture: snapshot saved at 09:<minute> UTC on a fixed day."""

    def _snap(minute: int, **kwargs) -> Snapshot:
        return Snapshot(saved_at=datetime(2026, 3, 1, 9, minute, tzinfo=timezone.utc), **kwargs)

    return _snap
