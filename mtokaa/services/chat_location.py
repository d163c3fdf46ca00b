"""
Chat-backed geolocation provider.

In Telegram the "device" is the chat: a user shares a location (one-shot) or
a live location (edited messages carry the updates). Handlers feed those
messages into `ChatLocationProvider.publish`; `LocationService` awaits them
through the regular provider interface.
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from mtokaa import config
from mtokaa.services.errors import PermissionDenied, RequestSuperseded
from mtokaa.services.location_service import LocationService, PermissionState, Position, now_ms

logger = logging.getLogger("mtokaa")


@dataclass
class _Watch:
    on_position: Callable[[Position], Awaitable[None]]
    on_error: Callable[[Exception], None] | None


class ChatLocationProvider:
    """Per-user provider fed by location messages."""

    def __init__(self, clock=now_ms):
        self._clock = clock
        self._last: Position | None = None
        self._permission = PermissionState.PROMPT
        self._waiters: list[asyncio.Future] = []
        self._watches: dict[int, _Watch] = {}
        self._ids = itertools.count(1)

    @property
    def has_pending_request(self) -> bool:
        return any(not w.done() for w in self._waiters)

    @property
    def has_watches(self) -> bool:
        return bool(self._watches)

    async def query_permission(self) -> PermissionState:
        return self._permission

    async def get_current_position(self, *, high_accuracy: bool = True, maximum_age_ms: int = 0) -> Position:
        if self._permission is PermissionState.DENIED:
            raise PermissionDenied("Location access denied by user")

        if self._last is not None and self._clock() - self._last.timestamp <= maximum_age_ms:
            return self._last

        # One outstanding request per user: the newest one wins
        earlier, self._waiters = self._waiters, []
        for waiter in earlier:
            if not waiter.done():
                waiter.set_exception(RequestSuperseded("Replaced by a newer location request"))

        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            return await future
        finally:
            if future in self._waiters:
                self._waiters.remove(future)

    def watch_position(self, on_position, on_error=None, *, high_accuracy=False,
                       maximum_age_ms=0, timeout_ms=0) -> int:
        watch_id = next(self._ids)
        self._watches[watch_id] = _Watch(on_position=on_position, on_error=on_error)
        return watch_id

    def clear_watch(self, watch_id: int):
        self._watches.pop(watch_id, None)

    async def publish(self, latitude: float, longitude: float, accuracy: float | None = None) -> int:
        """
        Deliver a shared location. Resolves pending one-shot requests, then
        notifies watchers. Returns how many consumers received it.
        """
        position = Position(latitude, longitude, accuracy, self._clock())
        self._last = position
        self._permission = PermissionState.GRANTED

        delivered = 0
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(position)
                delivered += 1

        for watch_id, watch in list(self._watches.items()):
            try:
                await watch.on_position(position)
                delivered += 1
            except Exception as e:
                logger.error(f"Location watcher {watch_id} failed: {e}")
                if watch.on_error is not None:
                    watch.on_error(e)
        return delivered

    def deny(self):
        """The user refused to share: fail pending requests and remember the refusal."""
        self._permission = PermissionState.DENIED
        error = PermissionDenied("Location access denied by user")
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_exception(error)
        for watch in list(self._watches.values()):
            if watch.on_error is not None:
                watch.on_error(error)

    def reset(self):
        """Forget a previous refusal so the next request prompts again."""
        if self._permission is PermissionState.DENIED:
            self._permission = PermissionState.PROMPT


class LocationHub:
    """One provider and one LocationService per Telegram user, sharing geocoder and store."""

    def __init__(self, geocoder=None, store=None, clock=now_ms):
        self._geocoder = geocoder
        self._store = store
        self._clock = clock
        self._providers: dict[int, ChatLocationProvider] = {}
        self._services: dict[int, LocationService] = {}
        self._last_seen: dict[int, int] = {}

    @property
    def session_count(self) -> int:
        return len(self._last_seen)

    def provider_for(self, user_id: int) -> ChatLocationProvider:
        self._last_seen[user_id] = self._clock()
        provider = self._providers.get(user_id)
        if provider is None:
            provider = ChatLocationProvider(clock=self._clock)
            self._providers[user_id] = provider
        return provider

    def service_for(self, user_id: int) -> LocationService:
        self._last_seen[user_id] = self._clock()
        service = self._services.get(user_id)
        if service is None:
            service = LocationService(
                provider=self.provider_for(user_id),
                geocoder=self._geocoder,
                store=self._store,
                cache_key=f"{config.LOCATION_CACHE_KEY}:{user_id}",
                clock=self._clock,
            )
            self._services[user_id] = service
        return service

    def _is_busy(self, user_id: int) -> bool:
        service = self._services.get(user_id)
        if service is not None and service.is_watching:
            return True
        provider = self._providers.get(user_id)
        return provider is not None and (provider.has_pending_request or provider.has_watches)

    def evict_idle(self, idle_ms: int = config.LOCATION_CACHE_TTL_MS) -> int:
        """
        Release users not seen for `idle_ms` that are neither watching nor
        waiting for a share. Their durable snapshot stays in the store, so a
        returning user gets a fresh service that reloads it.
        """
        cutoff = self._clock() - idle_ms
        idle = [
            user_id for user_id, seen in self._last_seen.items()
            if seen < cutoff and not self._is_busy(user_id)
        ]
        for user_id in idle:
            self._last_seen.pop(user_id, None)
            self._providers.pop(user_id, None)
            self._services.pop(user_id, None)
        if idle:
            logger.info(f"Released {len(idle)} idle location session(s)")
        return len(idle)

    def stop_all(self):
        for service in self._services.values():
            service.stop_watching()
