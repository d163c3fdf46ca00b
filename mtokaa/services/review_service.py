from mtokaa.db.base import fetch_one, fetch_all, execute_write, write_transaction


async def add_review(business_id: int, customer_telegram_id: int, stars: int,
                     comment: str | None = None) -> bool:
    """
    Save a 1-5 star review and fold it into the business rating aggregates.
    Returns False if this customer already reviewed the business.
    """
    if not 1 <= stars <= 5:
        raise ValueError(f"stars must be between 1 and 5, got {stars}")

    # Insert and aggregate update commit together
    async with write_transaction() as db:
        cursor = await db.execute(
            """INSERT OR IGNORE INTO reviews (business_id, customer_telegram_id, stars, comment)
               VALUES (?, ?, ?, ?)""",
            (business_id, customer_telegram_id, stars, comment),
        )
        if cursor.rowcount == 0:
            return False

        # Running average keeps aggregates imported with the business
        await db.execute(
            """UPDATE businesses
               SET rating = ROUND((rating * total_reviews + ?) / (total_reviews + 1.0), 1),
                   total_reviews = total_reviews + 1
               WHERE id = ?""",
            (stars, business_id),
        )
    return True


async def update_comment(business_id: int, customer_telegram_id: int, comment: str):
    await execute_write(
        "UPDATE reviews SET comment = ? WHERE business_id = ? AND customer_telegram_id = ?",
        (comment, business_id, customer_telegram_id),
    )


async def get_review(business_id: int, customer_telegram_id: int) -> dict | None:
    return await fetch_one(
        "SELECT * FROM reviews WHERE business_id = ? AND customer_telegram_id = ?",
        (business_id, customer_telegram_id),
    )


async def get_recent_comments(business_id: int, limit: int = 3) -> list[dict]:
    return await fetch_all(
        """SELECT stars, comment FROM reviews
           WHERE business_id = ? AND comment IS NOT NULL AND comment != ''
           ORDER BY id DESC LIMIT ?""",
        (business_id, limit),
    )
