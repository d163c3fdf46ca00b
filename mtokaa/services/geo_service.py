"""Geolocation services."""
import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate the great circle distance in kilometers between two points
    on the earth using the Haversine formula.
    """
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) * math.sin(dlon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in km between two (lat, lon) pairs."""
    return distance_km(Coordinate(lat1, lon1), Coordinate(lat2, lon2))


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple:
    """
    Calculate bounding box for SQL pre-filtering.
    Returns (min_lat, max_lat, min_lon, max_lon).

    Use this in the SQL WHERE clause before applying haversine.
    """
    # Angular distance in radians
    angular = radius_km / EARTH_RADIUS_KM

    min_lat = lat - math.degrees(angular)
    max_lat = lat + math.degrees(angular)

    # Longitude degrees shrink towards the poles
    delta_lon = math.degrees(angular / max(math.cos(math.radians(lat)), 1e-6))
    min_lon = lon - delta_lon
    max_lon = lon + delta_lon

    return (min_lat, max_lat, min_lon, max_lon)
