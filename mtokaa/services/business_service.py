"""Business, address and catalogue records."""
from mtokaa.db.base import fetch_one, fetch_all, execute_write, execute_write_returning
from mtokaa.services.listing_models import Address, Listing


async def create_business(data: dict) -> int:
    """Create a business. Returns business id."""
    return await execute_write_returning(
        """INSERT INTO businesses
           (owner_telegram_id, business_name, business_type, description, phone,
            rating, total_reviews, is_active, is_verified)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            data.get("owner_telegram_id"),
            data["business_name"],
            data["business_type"],
            data.get("description"),
            data.get("phone"),
            data.get("rating", 0),
            data.get("total_reviews", 0),
            1 if data.get("is_active", True) else 0,
            1 if data.get("is_verified", False) else 0,
        ),
    )


async def add_address(business_id: int, line: str | None = None, city: str | None = None,
                      state: str | None = None, latitude: float | None = None,
                      longitude: float | None = None, is_primary: bool = False) -> int:
    address_id = await execute_write_returning(
        "INSERT INTO addresses (line, city, state, latitude, longitude) VALUES (?, ?, ?, ?, ?)",
        (line, city, state, latitude, longitude),
    )
    if is_primary:
        await execute_write(
            "UPDATE business_addresses SET is_primary = 0 WHERE business_id = ?",
            (business_id,),
        )
    await execute_write(
        "INSERT INTO business_addresses (business_id, address_id, is_primary) VALUES (?, ?, ?)",
        (business_id, address_id, 1 if is_primary else 0),
    )
    return address_id


async def add_service(business_id: int, title: str, category: str | None = None,
                      description: str | None = None, tags: list[str] | None = None,
                      price: int | None = None, status: str = "AVAILABLE") -> int:
    return await execute_write_returning(
        """INSERT INTO services (business_id, title, description, category, tags, price, status)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (business_id, title, description, category, ",".join(tags or []), price, status),
    )


async def add_product(business_id: int, name: str, category: str | None = None,
                      price: int | None = None, stock: int = 0, status: str = "AVAILABLE") -> int:
    return await execute_write_returning(
        """INSERT INTO products (business_id, name, category, price, stock, status)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (business_id, name, category, price, stock, status),
    )


def _address_from_row(row: dict) -> Address:
    return Address(
        latitude=row["latitude"],
        longitude=row["longitude"],
        is_primary=bool(row["is_primary"]),
        line=row["line"],
        city=row["city"],
    )


async def get_addresses(business_id: int) -> list[Address]:
    rows = await fetch_all(
        """SELECT a.*, ba.is_primary FROM business_addresses ba
           JOIN addresses a ON a.id = ba.address_id
           WHERE ba.business_id = ?
           ORDER BY a.id""",
        (business_id,),
    )
    return [_address_from_row(r) for r in rows]


async def get_business(business_id: int) -> dict | None:
    """Full business card: row, addresses and available catalogue."""
    business = await fetch_one("SELECT * FROM businesses WHERE id = ?", (business_id,))
    if not business:
        return None

    business["addresses"] = await get_addresses(business_id)
    business["services"] = await fetch_all(
        "SELECT id, title, price, category FROM services "
        "WHERE business_id = ? AND status = 'AVAILABLE' ORDER BY id",
        (business_id,),
    )
    business["products"] = await fetch_all(
        "SELECT id, name, price, category, stock FROM products "
        "WHERE business_id = ? AND status = 'AVAILABLE' AND stock > 0 ORDER BY id",
        (business_id,),
    )
    return business


async def set_verified(business_id: int, verified: bool = True):
    await execute_write(
        "UPDATE businesses SET is_verified = ? WHERE id = ?",
        (1 if verified else 0, business_id),
    )


async def get_business_counts() -> dict:
    row = await fetch_one(
        """SELECT COUNT(*) AS total,
                  COALESCE(SUM(CASE WHEN is_active = 1 AND is_verified = 1 THEN 1 ELSE 0 END), 0) AS listed
           FROM businesses"""
    )
    return {"total": row["total"], "listed": row["listed"]}


async def list_active_businesses() -> list[Listing]:
    """Active verified businesses as Listings, best rated first."""
    rows = await fetch_all(
        """SELECT * FROM businesses
           WHERE is_active = 1 AND is_verified = 1
           ORDER BY rating DESC, total_reviews DESC, id"""
    )
    listings = []
    for row in rows:
        listings.append(Listing(
            id=row["id"],
            kind="business",
            name=row["business_name"],
            business_type=row["business_type"],
            rating=row["rating"] or 0.0,
            reviews=row["total_reviews"] or 0,
            addresses=await get_addresses(row["id"]),
            data=row,
        ))
    return listings
