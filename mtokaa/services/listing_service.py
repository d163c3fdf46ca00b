"""
Listing fetchers with optional distance re-ranking.

Every fetcher follows the same pattern: read candidates ordered by business
quality (rating, then review count), over-fetching twice the page size, and,
only when the caller supplies a coordinate, re-rank by distance from each
business's primary address before truncating.
"""
import logging
import math

from mtokaa.db.base import get_db
from mtokaa.services.geo_service import Coordinate, bounding_box, distance_km
from mtokaa.services.listing_models import Address, Listing

logger = logging.getLogger("mtokaa")

OVERFETCH = 2
CATALOGUE_PREVIEW = 5


def rank_by_distance(listings: list[Listing], user_lat: float | None, user_lon: float | None,
                     limit: int | None = None) -> list[Listing]:
    """
    Stable sort by distance from (user_lat, user_lon), listings without a usable
    address last. Without a user coordinate the input order is kept and no
    distance is computed.
    """
    if user_lat is None or user_lon is None:
        return listings if limit is None else listings[:limit]

    origin = Coordinate(user_lat, user_lon)

    def key(listing: Listing) -> float:
        coordinate = listing.coordinate()
        return math.inf if coordinate is None else distance_km(origin, coordinate)

    ranked = sorted(listings, key=key)
    return ranked if limit is None else ranked[:limit]


async def _fetch_with_addresses(query: str, params: tuple, extra_queries: dict | None = None):
    """
    Run the candidate query and load addresses (and optional per-business
    previews) on the same connection. Returns (rows, addresses_by_business, extras).
    """
    db = await get_db()
    try:
        cursor = await db.execute(query, params)
        rows = [dict(r) for r in await cursor.fetchall()]

        business_ids = sorted({r["business_id"] for r in rows})
        addresses: dict[int, list[Address]] = {bid: [] for bid in business_ids}
        extras: dict[str, dict[int, list[dict]]] = {}
        if not business_ids:
            return rows, addresses, extras

        placeholders = ",".join("?" for _ in business_ids)
        cursor = await db.execute(
            f"""SELECT ba.business_id, ba.is_primary, a.* FROM business_addresses ba
                JOIN addresses a ON a.id = ba.address_id
                WHERE ba.business_id IN ({placeholders})
                ORDER BY ba.business_id, a.id""",
            tuple(business_ids),
        )
        for r in await cursor.fetchall():
            addresses[r["business_id"]].append(Address(
                latitude=r["latitude"],
                longitude=r["longitude"],
                is_primary=bool(r["is_primary"]),
                line=r["line"],
                city=r["city"],
            ))

        for name, extra_query in (extra_queries or {}).items():
            grouped: dict[int, list[dict]] = {bid: [] for bid in business_ids}
            cursor = await db.execute(extra_query.format(ids=placeholders), tuple(business_ids))
            for r in await cursor.fetchall():
                item = dict(r)
                bucket = grouped[item.pop("business_id")]
                if len(bucket) < CATALOGUE_PREVIEW:
                    bucket.append(item)
            extras[name] = grouped

        return rows, addresses, extras
    finally:
        await db.close()


def _listing(kind: str, row: dict, name_field: str, addresses: dict) -> Listing:
    return Listing(
        id=row["id"],
        kind=kind,
        name=row[name_field],
        business_type=row["business_type"],
        rating=row["rating"] or 0.0,
        reviews=row["total_reviews"] or 0,
        addresses=addresses.get(row["business_id"], []),
        data=row,
    )


_SERVICE_SELECT = """
    SELECT s.*, b.business_name, b.business_type, b.rating, b.total_reviews
    FROM services s
    JOIN businesses b ON b.id = s.business_id
"""

_PRODUCT_SELECT = """
    SELECT p.*, b.business_name, b.business_type, b.rating, b.total_reviews
    FROM products p
    JOIN businesses b ON b.id = p.business_id
"""


async def get_featured_services(limit: int = 6, user_lat: float | None = None,
                                user_lon: float | None = None) -> list[Listing]:
    rows, addresses, _ = await _fetch_with_addresses(
        _SERVICE_SELECT + """
        WHERE s.status = 'AVAILABLE' AND b.is_active = 1 AND b.is_verified = 1
        ORDER BY b.rating DESC, b.total_reviews DESC, s.id
        LIMIT ?""",
        (limit * OVERFETCH,),
    )
    listings = [_listing("service", r, "title", addresses) for r in rows]
    return rank_by_distance(listings, user_lat, user_lon, limit)


async def get_featured_products(limit: int = 6, user_lat: float | None = None,
                                user_lon: float | None = None) -> list[Listing]:
    rows, addresses, _ = await _fetch_with_addresses(
        _PRODUCT_SELECT + """
        WHERE p.status = 'AVAILABLE' AND p.stock > 0 AND b.is_active = 1 AND b.is_verified = 1
        ORDER BY b.rating DESC, b.total_reviews DESC, p.id
        LIMIT ?""",
        (limit * OVERFETCH,),
    )
    listings = [_listing("product", r, "name", addresses) for r in rows]
    return rank_by_distance(listings, user_lat, user_lon, limit)


_BUSINESS_PREVIEWS = {
    "services": """SELECT business_id, id, title, price, category FROM services
                   WHERE business_id IN ({ids}) AND status = 'AVAILABLE'
                   ORDER BY business_id, id""",
    "products": """SELECT business_id, id, name, price, category FROM products
                   WHERE business_id IN ({ids}) AND status = 'AVAILABLE' AND stock > 0
                   ORDER BY business_id, id""",
}


def _business_listings(rows, addresses, extras) -> list[Listing]:
    listings = []
    for r in rows:
        r["services"] = extras.get("services", {}).get(r["business_id"], [])
        r["products"] = extras.get("products", {}).get(r["business_id"], [])
        listings.append(_listing("business", r, "business_name", addresses))
    return listings


async def get_featured_businesses(limit: int = 6, user_lat: float | None = None,
                                  user_lon: float | None = None) -> list[Listing]:
    rows, addresses, extras = await _fetch_with_addresses(
        """SELECT b.*, b.id AS business_id FROM businesses b
           WHERE b.is_active = 1 AND b.is_verified = 1
           ORDER BY b.rating DESC, b.total_reviews DESC, b.id
           LIMIT ?""",
        (limit * OVERFETCH,),
        _BUSINESS_PREVIEWS,
    )
    listings = _business_listings(rows, addresses, extras)
    return rank_by_distance(listings, user_lat, user_lon, limit)


async def search_services(query: str, category: str | None = None,
                          user_lat: float | None = None, user_lon: float | None = None) -> list[Listing]:
    """Text search over title, description, category and exact tags; no truncation."""
    sql = _SERVICE_SELECT + """
        WHERE s.status = 'AVAILABLE' AND b.is_active = 1
          AND (lower(s.title) LIKE '%' || lower(?) || '%'
               OR lower(coalesce(s.description, '')) LIKE '%' || lower(?) || '%'
               OR lower(coalesce(s.category, '')) LIKE '%' || lower(?) || '%'
               OR (',' || lower(s.tags) || ',') LIKE '%,' || lower(?) || ',%')
    """
    params = [query, query, query, query]
    if category:
        sql += " AND lower(coalesce(s.category, '')) LIKE '%' || lower(?) || '%'"
        params.append(category)
    sql += " ORDER BY b.rating DESC, s.id"

    rows, addresses, _ = await _fetch_with_addresses(sql, tuple(params))
    listings = [_listing("service", r, "title", addresses) for r in rows]
    return rank_by_distance(listings, user_lat, user_lon)


async def get_nearby_candidates(lat: float, lon: float, radius_km: float) -> list[Listing]:
    """
    Active verified businesses with at least one address inside the radius's
    bounding box. Exact distances are left to the proximity ranking.
    """
    min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius_km)
    rows, addresses, extras = await _fetch_with_addresses(
        """SELECT b.*, b.id AS business_id FROM businesses b
           WHERE b.is_active = 1 AND b.is_verified = 1
             AND EXISTS (
                 SELECT 1 FROM business_addresses ba
                 JOIN addresses a ON a.id = ba.address_id
                 WHERE ba.business_id = b.id
                   AND a.latitude BETWEEN ? AND ?
                   AND a.longitude BETWEEN ? AND ?
             )
           ORDER BY b.rating DESC, b.total_reviews DESC, b.id""",
        (min_lat, max_lat, min_lon, max_lon),
        _BUSINESS_PREVIEWS,
    )
    listings = _business_listings(rows, addresses, extras)
    logger.debug(f"{len(listings)} nearby candidate(s) in {radius_km} km box around {lat}, {lon}")
    return listings
