"""
Location acquisition: get the user's position from the platform, name the
place, and keep a short-lived cached snapshot.

The platform capability, the reverse geocoder and the durable cache are all
passed in, so one service instance is built per user scope.

    provider.query_permission() -> PermissionState | None
    provider.get_current_position(high_accuracy=..., maximum_age_ms=...) -> Position
    provider.watch_position(on_position, on_error, high_accuracy=..., maximum_age_ms=..., timeout_ms=...) -> int
    provider.clear_watch(watch_id)

Acquisition failures (PermissionDenied, PositionUnavailable, Timeout)
propagate. Geocoding and cache failures are logged and degrade to
coordinates-only / cache-miss.
"""
import asyncio
import enum
import inspect
import json
import logging
import time
from dataclasses import dataclass, asdict, replace

from mtokaa import config
from mtokaa.services.errors import PositionUnavailable, Timeout, StorageFailure
from mtokaa.services.geo_service import Coordinate
from mtokaa.services.geocoding_service import PlaceInfo

logger = logging.getLogger("mtokaa")


def now_ms() -> int:
    return int(time.time() * 1000)


class PermissionState(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: float | None = None
    timestamp: int = 0


@dataclass(frozen=True)
class LocationSnapshot:
    latitude: float
    longitude: float
    city: str | None = None
    state: str | None = None
    country: str | None = None
    formatted_address: str | None = None
    timestamp: int = 0

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def with_place(self, place: PlaceInfo) -> "LocationSnapshot":
        return replace(
            self,
            city=place.city,
            state=place.state,
            country=place.country,
            formatted_address=place.formatted_address,
        )

    def label(self) -> str:
        if self.formatted_address:
            return self.formatted_address
        return f"{self.latitude:.4f}, {self.longitude:.4f}"

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "LocationSnapshot":
        data = json.loads(raw)
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            city=data.get("city"),
            state=data.get("state"),
            country=data.get("country"),
            formatted_address=data.get("formatted_address"),
            timestamp=int(data["timestamp"]),
        )


class LocationService:

    def __init__(
        self,
        provider=None,
        geocoder=None,
        store=None,
        cache_key: str = config.LOCATION_CACHE_KEY,
        ttl_ms: int = config.LOCATION_CACHE_TTL_MS,
        clock=now_ms,
    ):
        self._provider = provider
        self._geocoder = geocoder
        self._store = store
        self.cache_key = cache_key
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._current: LocationSnapshot | None = None
        self._watch_id: int | None = None

    @property
    def is_watching(self) -> bool:
        return self._watch_id is not None

    # ───────────────────────── permission ─────────────────────────

    async def check_permission(self) -> PermissionState:
        """Ask the platform. Without introspection the answer is PROMPT, never GRANTED."""
        if self._provider is None:
            return PermissionState.PROMPT
        try:
            state = await self._provider.query_permission()
        except NotImplementedError:
            logger.debug("Permission query not supported by provider")
            return PermissionState.PROMPT
        if state is None:
            return PermissionState.PROMPT
        return PermissionState(state)

    # ───────────────────────── acquisition ─────────────────────────

    async def request_location(
        self,
        timeout_ms: int = config.REQUEST_TIMEOUT_MS,
        max_cache_age_ms: int = config.REQUEST_MAX_AGE_MS,
    ) -> LocationSnapshot:
        """
        One-shot, high-accuracy acquisition raced against `timeout_ms`.

        Raises PermissionDenied / PositionUnavailable from the provider, or
        Timeout when nothing arrived in time (the provider call is cancelled).
        Reverse geocoding is best-effort.
        """
        if self._provider is None:
            raise PositionUnavailable("No geolocation provider available")

        try:
            position = await asyncio.wait_for(
                self._provider.get_current_position(
                    high_accuracy=True, maximum_age_ms=max_cache_age_ms
                ),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise Timeout(f"Location request timed out after {timeout_ms} ms") from None

        return await self._accept_position(position)

    async def reverse_geocode(self, lat: float, lon: float) -> PlaceInfo:
        """Place info for a coordinate; empty PlaceInfo when unavailable."""
        if self._geocoder is None:
            return PlaceInfo()
        place = await self._geocoder.lookup(lat, lon)
        return place if place is not None else PlaceInfo()

    async def set_manual_location(
        self, latitude: float, longitude: float, place: PlaceInfo | None = None
    ) -> LocationSnapshot:
        """Store a position the user picked by hand (e.g. a city preset)."""
        snapshot = LocationSnapshot(latitude=latitude, longitude=longitude, timestamp=self._clock())
        if place is None:
            place = await self.reverse_geocode(latitude, longitude)
        snapshot = snapshot.with_place(place)
        await self._remember(snapshot)
        return snapshot

    async def _accept_position(self, position: Position) -> LocationSnapshot:
        snapshot = LocationSnapshot(
            latitude=position.latitude,
            longitude=position.longitude,
            timestamp=self._clock(),
        )
        place = await self.reverse_geocode(snapshot.latitude, snapshot.longitude)
        if not place.is_empty():
            snapshot = snapshot.with_place(place)
        await self._remember(snapshot)
        return snapshot

    # ───────────────────────── watching ─────────────────────────

    def start_watching(self, callback):
        """
        Subscribe to continuous, low-accuracy updates. `callback` receives each
        new LocationSnapshot and may be sync or async. An existing
        subscription is replaced.
        """
        if self._provider is None:
            logger.warning("start_watching called without a geolocation provider")
            return
        if self._watch_id is not None:
            self.stop_watching()

        async def on_position(position: Position):
            snapshot = await self._accept_position(position)
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result

        def on_error(error: Exception):
            logger.warning(f"Location watching error: {error}")

        self._watch_id = self._provider.watch_position(
            on_position,
            on_error,
            high_accuracy=False,
            maximum_age_ms=config.WATCH_MAX_AGE_MS,
            timeout_ms=config.WATCH_TIMEOUT_MS,
        )

    def stop_watching(self):
        if self._watch_id is None:
            return
        self._provider.clear_watch(self._watch_id)
        self._watch_id = None

    # ───────────────────────── cache ─────────────────────────

    def _is_expired(self, snapshot: LocationSnapshot) -> bool:
        return self._clock() - snapshot.timestamp > self._ttl_ms

    async def get_current_location(self) -> LocationSnapshot | None:
        """Memory, then the durable cache. Expired snapshots are dropped. Never acquires."""
        if self._current is not None:
            if not self._is_expired(self._current):
                return self._current
            self._current = None
            await self._forget_stored()
            return None

        snapshot = await self._load_stored()
        if snapshot is None:
            return None
        if self._is_expired(snapshot):
            await self._forget_stored()
            return None

        self._current = snapshot
        return snapshot

    async def clear_stored_location(self):
        self._current = None
        await self._forget_stored()

    async def _remember(self, snapshot: LocationSnapshot):
        self._current = snapshot
        if self._store is None:
            return
        try:
            await self._store.set(self.cache_key, snapshot.to_json())
        except StorageFailure as e:
            logger.warning(f"Failed to save location to storage: {e}")

    async def _load_stored(self) -> LocationSnapshot | None:
        if self._store is None:
            return None
        try:
            raw = await self._store.get(self.cache_key)
        except StorageFailure as e:
            logger.warning(f"Failed to load location from storage: {e}")
            return None
        if raw is None:
            return None
        try:
            return LocationSnapshot.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding malformed cached location: {e}")
            await self._forget_stored()
            return None

    async def _forget_stored(self):
        if self._store is None:
            return
        try:
            await self._store.remove(self.cache_key)
        except StorageFailure as e:
            logger.warning(f"Failed to clear stored location: {e}")
