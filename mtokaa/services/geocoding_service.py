"""Reverse geocoding: coordinates -> city / state / country."""
import logging
from dataclasses import dataclass

import httpx

from mtokaa import config

logger = logging.getLogger("mtokaa")


@dataclass(frozen=True)
class PlaceInfo:
    city: str | None = None
    state: str | None = None
    country: str | None = None
    formatted_address: str | None = None

    def is_empty(self) -> bool:
        return not any((self.city, self.state, self.country, self.formatted_address))


def parse_place(payload) -> PlaceInfo | None:
    """Map a reverse-geocode JSON payload to PlaceInfo. None when nothing usable."""
    if not isinstance(payload, dict):
        return None

    city = payload.get("city") or payload.get("locality") or None
    state = payload.get("principalSubdivision") or None
    country = payload.get("countryName") or None
    formatted = payload.get("display_name") or ", ".join(p for p in (city, state) if p) or None

    place = PlaceInfo(city=city, state=state, country=country, formatted_address=formatted)
    return None if place.is_empty() else place


class ReverseGeocoder:
    """
    BigDataCloud-compatible reverse geocoding client.

    `lookup` never raises: non-2xx responses, transport errors and malformed
    payloads all come back as None so callers can continue with coordinates.
    """

    def __init__(
        self,
        base_url: str = config.GEOCODER_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = config.GEOCODER_TIMEOUT,
    ):
        self.base_url = base_url
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def lookup(self, lat: float, lon: float) -> PlaceInfo | None:
        params = {"latitude": lat, "longitude": lon, "localityLanguage": "en"}
        try:
            resp = await self._get_client().get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Reverse geocoding request failed: {e}")
            return None

        if not resp.is_success:
            logger.warning(f"Reverse geocoding error {resp.status_code}: {resp.text[:200]}")
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Reverse geocoding returned a non-JSON body")
            return None

        place = parse_place(payload)
        if place is None:
            logger.warning(f"Reverse geocoding returned no address data for {lat}, {lon}")
        return place

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
