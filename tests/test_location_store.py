"""Tests for the SQLite-backed location cache and its purge job."""

import asyncio
import json

import pytest

from mtokaa import config
from mtokaa.scheduler import purge_expired_locations, scheduler_loop
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.errors import StorageFailure
from mtokaa.services.location_service import LocationService, now_ms
from mtokaa.services.location_store import LocationStore

from conftest import FakeClock, FakeGeocoder, FakeProvider


def entry(timestamp) -> str:
    return json.dumps({"latitude": -1.29, "longitude": 36.82, "timestamp": timestamp})


class TestLocationStore:
    async def test_roundtrip_and_upsert(self, db):
        store = LocationStore()
        assert await store.get("user_location:1") is None

        await store.set("user_location:1", "first")
        await store.set("user_location:1", "second")
        assert await store.get("user_location:1") == "second"

        await store.remove("user_location:1")
        assert await store.get("user_location:1") is None

    async def test_remove_missing_key(self, db):
        await LocationStore().remove("nothing-here")

    async def test_unreadable_database(self, tmp_path, monkeypatch):
        # A directory cannot be opened as a database file
        monkeypatch.setattr(config, "DB_PATH", tmp_path)
        store = LocationStore()
        with pytest.raises(StorageFailure):
            await store.get("user_location:1")
        with pytest.raises(StorageFailure):
            await store.set("user_location:1", "x")

    async def test_purge(self, db):
        store = LocationStore()
        await store.set("user_location:1", entry(1_000))
        await store.set("user_location:2", entry(5_000))
        await store.set("user_location:3", "garbage")
        await store.set("other:1", entry(0))

        assert await store.purge_prefix_older_than("user_location:", 3_000) == 2
        assert await store.get("user_location:1") is None
        assert await store.get("user_location:2") is not None
        assert await store.get("user_location:3") is None
        assert await store.get("other:1") is not None

    async def test_scheduled_purge_uses_ttl(self, db):
        store = LocationStore()
        now = now_ms()
        await store.set("user_location:1", entry(now - config.LOCATION_CACHE_TTL_MS - 60_000))
        await store.set("user_location:2", entry(now - 60_000))

        assert await purge_expired_locations(store) == 1
        assert await store.get("user_location:2") is not None

    async def test_scheduler_releases_idle_sessions(self, db):
        store = LocationStore()
        clock = FakeClock(now_ms())
        hub = LocationHub(store=store, clock=clock)
        hub.service_for(1)
        clock.advance(61)

        task = asyncio.create_task(scheduler_loop(store, hub, interval=3600))
        for _ in range(200):
            if hub.session_count == 0:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert hub.session_count == 0


class TestServiceOnSqlite:
    async def test_snapshot_survives_new_service(self, db):
        clock = FakeClock()
        store = LocationStore()
        first = LocationService(provider=FakeProvider(), geocoder=FakeGeocoder(None), store=store,
                                cache_key="user_location:42", clock=clock)
        snapshot = await first.request_location()

        clock.advance(30)
        second = LocationService(store=store, cache_key="user_location:42", clock=clock)
        assert await second.get_current_location() == snapshot
