"""Shared fixtures: a throwaway SQLite database and test doubles for the location stack."""

import asyncio

import pytest

from mtokaa import config
from mtokaa.db.base import init_db
from mtokaa.db.seed import seed_businesses
from mtokaa.services.errors import StorageFailure
from mtokaa.services.location_service import Position

CBD = (-1.2921, 36.8219)
WESTLANDS = (-1.3031, 36.8331)
T0 = 1_700_000_000_000


@pytest.fixture
async def db(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "test.db")
    await init_db()
    return tmp_path / "test.db"


@pytest.fixture
async def seeded(db):
    await seed_businesses()
    return db


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float):
        self.now += int(minutes * 60 * 1000)


class FakeProvider:
    """Scripted geolocation provider."""

    def __init__(self, position=None, error=None, permission=None, hang=False):
        self.position = position or Position(*CBD)
        self.error = error
        self.permission = permission
        self.hang = hang
        self.requests = []
        self.watches = {}
        self.cleared = []
        self._next_id = 0

    async def query_permission(self):
        if self.permission is NotImplemented:
            raise NotImplementedError
        return self.permission

    async def get_current_position(self, *, high_accuracy=True, maximum_age_ms=0):
        self.requests.append({"high_accuracy": high_accuracy, "maximum_age_ms": maximum_age_ms})
        if self.hang:
            await asyncio.sleep(10)
        if self.error is not None:
            raise self.error
        return self.position

    def watch_position(self, on_position, on_error=None, **options):
        self._next_id += 1
        self.watches[self._next_id] = (on_position, on_error, options)
        return self._next_id

    def clear_watch(self, watch_id):
        self.cleared.append(watch_id)
        self.watches.pop(watch_id, None)


class FakeGeocoder:
    def __init__(self, place=None):
        self.place = place
        self.calls = []

    async def lookup(self, lat, lon):
        self.calls.append((lat, lon))
        return self.place


class MemoryStore:
    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise StorageFailure("storage offline")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value

    async def remove(self, key):
        self._check()
        self.data.pop(key, None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()
