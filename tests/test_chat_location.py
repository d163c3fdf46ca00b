"""Tests for the chat-backed provider and the per-user hub."""

import asyncio

import pytest

from conftest import CBD, WESTLANDS, FakeClock, FakeGeocoder, MemoryStore
from mtokaa.services.chat_location import ChatLocationProvider, LocationHub
from mtokaa.services.errors import PermissionDenied, RequestSuperseded, Timeout
from mtokaa.services.geocoding_service import PlaceInfo
from mtokaa.services.location_service import PermissionState


async def wait_for_pending(provider: ChatLocationProvider):
    for _ in range(100):
        if provider.has_pending_request:
            return
        await asyncio.sleep(0)
    raise AssertionError("no pending location request")


@pytest.fixture
def hub(clock):
    return LocationHub(geocoder=FakeGeocoder(PlaceInfo(city="Nairobi", formatted_address="Nairobi")),
                       store=MemoryStore(), clock=clock)


class TestChatLocationProvider:
    async def test_publish_resolves_pending_request(self, hub):
        service = hub.service_for(1)
        provider = hub.provider_for(1)

        task = asyncio.create_task(service.request_location(timeout_ms=1000))
        await wait_for_pending(provider)
        delivered = await provider.publish(*CBD)
        snapshot = await task

        assert delivered == 1
        assert (snapshot.latitude, snapshot.longitude) == CBD
        assert snapshot.city == "Nairobi"
        assert not provider.has_pending_request

    async def test_recent_fix_is_reused(self, hub, clock):
        provider = hub.provider_for(1)
        assert await provider.publish(*CBD) == 0

        clock.advance(4)
        snapshot = await hub.service_for(1).request_location(timeout_ms=50)
        assert (snapshot.latitude, snapshot.longitude) == CBD

    async def test_stale_fix_waits_for_a_new_one(self, hub, clock):
        await hub.provider_for(1).publish(*CBD)
        clock.advance(6)
        with pytest.raises(Timeout):
            await hub.service_for(1).request_location(timeout_ms=20)
        assert not hub.provider_for(1).has_pending_request

    async def test_deny_fails_pending_request(self, hub):
        service = hub.service_for(1)
        provider = hub.provider_for(1)

        task = asyncio.create_task(service.request_location(timeout_ms=1000))
        await wait_for_pending(provider)
        provider.deny()

        with pytest.raises(PermissionDenied):
            await task
        assert await service.check_permission() is PermissionState.DENIED

    async def test_newer_request_supersedes_pending_one(self, hub):
        service = hub.service_for(1)
        provider = hub.provider_for(1)

        first = asyncio.create_task(service.request_location(timeout_ms=1000))
        await wait_for_pending(provider)
        second = asyncio.create_task(service.request_location(timeout_ms=1000))
        with pytest.raises(RequestSuperseded):
            await first

        await wait_for_pending(provider)
        assert await provider.publish(*CBD) == 1
        snapshot = await second
        assert (snapshot.latitude, snapshot.longitude) == CBD

    async def test_denied_until_reset(self, hub):
        service = hub.service_for(1)
        provider = hub.provider_for(1)
        provider.deny()

        with pytest.raises(PermissionDenied):
            await service.request_location(timeout_ms=50)

        provider.reset()
        assert await service.check_permission() is PermissionState.PROMPT

    async def test_publish_grants_permission(self, hub):
        provider = hub.provider_for(1)
        assert await provider.query_permission() is PermissionState.PROMPT
        await provider.publish(*CBD)
        assert await provider.query_permission() is PermissionState.GRANTED

    async def test_watchers_receive_live_updates(self, hub):
        service = hub.service_for(1)
        provider = hub.provider_for(1)
        received = []
        service.start_watching(received.append)

        assert await provider.publish(*CBD) == 1
        assert await provider.publish(*WESTLANDS) == 1
        assert [(s.latitude, s.longitude) for s in received] == [CBD, WESTLANDS]

        service.stop_watching()
        assert await provider.publish(*CBD) == 0

    async def test_failing_watcher_reports_error(self, clock):
        provider = ChatLocationProvider(clock=clock)
        errors = []

        async def broken(position):
            raise RuntimeError("render failed")

        provider.watch_position(broken, errors.append)
        assert await provider.publish(*CBD) == 0
        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)


class TestLocationHub:
    def test_one_service_per_user(self, hub):
        assert hub.service_for(1) is hub.service_for(1)
        assert hub.service_for(1) is not hub.service_for(2)

    def test_cache_keys_are_per_user(self, hub):
        assert hub.service_for(7).cache_key == "user_location:7"

    async def test_users_are_isolated(self, hub):
        await hub.provider_for(1).publish(*CBD)
        assert hub.provider_for(2).has_pending_request is False
        assert await hub.provider_for(2).query_permission() is PermissionState.PROMPT

    def test_stop_all(self, hub):
        service = hub.service_for(1)
        service.start_watching(lambda snapshot: None)
        hub.stop_all()
        assert not service.is_watching

    async def test_shared_store(self, clock):
        store = MemoryStore()
        first = LocationHub(geocoder=FakeGeocoder(None), store=store, clock=clock)
        await first.service_for(3).set_manual_location(*CBD, PlaceInfo(city="Nairobi"))

        second = LocationHub(geocoder=FakeGeocoder(None), store=store, clock=clock)
        snapshot = await second.service_for(3).get_current_location()
        assert snapshot.city == "Nairobi"


class TestIdleEviction:
    def test_releases_users_idle_past_cutoff(self, hub, clock):
        for user_id in range(1000):
            hub.service_for(user_id)
        assert hub.session_count == 1000

        clock.advance(61)
        assert hub.evict_idle() == 1000
        assert hub.session_count == 0

    def test_recently_seen_users_stay(self, hub, clock):
        hub.service_for(1)
        clock.advance(59)
        hub.service_for(2)
        clock.advance(2)

        assert hub.evict_idle() == 1
        assert hub.session_count == 1
        service = hub.service_for(2)
        assert hub.service_for(2) is service

    async def test_watching_and_waiting_users_stay(self, hub, clock):
        watcher = hub.service_for(1)
        watcher.start_watching(lambda snapshot: None)

        waiting = asyncio.create_task(hub.service_for(2).request_location(timeout_ms=60_000))
        await wait_for_pending(hub.provider_for(2))
        hub.service_for(3)

        clock.advance(61)
        assert hub.evict_idle() == 1
        assert hub.session_count == 2
        assert hub.service_for(1) is watcher

        await hub.provider_for(2).publish(*CBD)
        await waiting

    async def test_returning_user_reloads_stored_snapshot(self, hub, clock):
        await hub.service_for(5).set_manual_location(*WESTLANDS, PlaceInfo(city="Westlands"))
        clock.advance(2)

        assert hub.evict_idle(idle_ms=60_000) == 1
        snapshot = await hub.service_for(5).get_current_location()
        assert snapshot.city == "Westlands"
