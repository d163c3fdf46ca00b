"""
Proximity ranking for nearby search.

Pure functions over in-memory listings: radius filtering, sorting, distance
tiers, density statistics and human-readable distance/travel-time labels.
Listings without coordinates are "infinitely far": they fail any finite
radius and sort last, they never raise.
"""
import logging
import math
from collections import Counter

from mtokaa.services.geo_service import Coordinate, distance_km
from mtokaa.services.listing_models import Listing, RankedListing

logger = logging.getLogger("mtokaa")

DEFAULT_MAX_DISTANCE_KM = 50
DEFAULT_LIMIT = 20

SORT_KEYS = ("distance", "rating", "reviews")

# km/h
TRAVEL_SPEEDS = {"driving": 40, "walking": 5}

NEARBY_TIER_KM = 5
MODERATE_TIER_KM = 15


def _origin(user_location) -> Coordinate:
    # Accepts a Coordinate or a LocationSnapshot
    return Coordinate(user_location.latitude, user_location.longitude)


def _distance_or_inf(origin: Coordinate, listing: Listing) -> float:
    coordinate = listing.coordinate()
    if coordinate is None:
        return math.inf
    return distance_km(origin, coordinate)


def find_nearby(
    user_location,
    listings: list[Listing],
    max_distance: float = DEFAULT_MAX_DISTANCE_KM,
    service_type: str | None = None,
    limit: int | None = DEFAULT_LIMIT,
    sort_by: str = "distance",
) -> list[RankedListing]:
    """
    Rank listings around the user.

    Filters by business type first, drops everything farther than
    `max_distance`, sorts (stable) by `sort_by` and truncates to `limit`.
    Rating and review sorts are descending and do not fall back to distance
    on ties: equal entries keep their input order.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}")

    origin = _origin(user_location)
    candidates = listings
    if service_type:
        candidates = [item for item in listings if item.business_type == service_type]

    ranked = []
    for listing in candidates:
        dist = _distance_or_inf(origin, listing)
        if dist > max_distance:
            continue
        ranked.append((dist, listing))

    if sort_by == "rating":
        ranked.sort(key=lambda pair: -pair[1].rating)
    elif sort_by == "reviews":
        ranked.sort(key=lambda pair: -pair[1].reviews)
    else:
        ranked.sort(key=lambda pair: pair[0])

    if limit is not None:
        ranked = ranked[:limit]

    return [
        RankedListing(listing=listing, distance_km=None if math.isinf(dist) else dist)
        for dist, listing in ranked
    ]


def _round_half_up(value: float) -> int:
    # Non-negative inputs only; halves round up
    return math.floor(value + 0.5)


def format_distance(km: float) -> str:
    """'750m' below one kilometre, '4.3km' from there on."""
    if km < 1:
        return f"{_round_half_up(km * 1000)}m"
    return f"{km:.1f}km"


def estimate_travel_time(km: float, mode: str = "driving") -> str:
    """Rough travel time at a fixed average speed: '30 min', '2h 15m', '3h'."""
    speed = TRAVEL_SPEEDS.get(mode)
    if speed is None:
        raise ValueError(f"Unknown travel mode: {mode}")

    minutes = _round_half_up(km / speed * 60)
    if minutes < 60:
        return f"{minutes} min"

    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def attach_travel_times(ranked: list[RankedListing], mode: str = "driving") -> list[RankedListing]:
    for item in ranked:
        if item.distance_km is not None:
            item.travel_time = estimate_travel_time(item.distance_km, mode)
    return ranked


def group_by_distance_tier(ranked: list[RankedListing]) -> dict[str, list[RankedListing]]:
    """
    Bucket ranked listings into nearby (<5 km), moderate (5-15 km) and far.

    Listings with an unknown distance are left out of every tier rather than
    being counted as nearby.
    """
    groups = {"nearby": [], "moderate": [], "far": []}
    for item in ranked:
        if item.distance_km is None:
            logger.debug(f"Skipping {item.listing.kind} {item.listing.id} in tiers: unknown distance")
            continue
        if item.distance_km < NEARBY_TIER_KM:
            groups["nearby"].append(item)
        elif item.distance_km < MODERATE_TIER_KM:
            groups["moderate"].append(item)
        else:
            groups["far"].append(item)
    return groups


def get_service_density(user_location, listings: list[Listing], radius: float = 10) -> dict:
    """Count and average distance of listings within `radius` km."""
    nearby = find_nearby(user_location, listings, max_distance=radius, limit=None)

    count_by_type = Counter(item.listing.business_type for item in nearby)
    distances = [item.distance_km for item in nearby if item.distance_km is not None]
    average = sum(distances) / len(distances) if distances else 0.0

    return {
        "total_count": len(nearby),
        "count_by_type": dict(count_by_type),
        "average_distance": average,
    }
