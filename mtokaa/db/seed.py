import json
import logging

from mtokaa import config
from mtokaa.db.base import fetch_one
from mtokaa.services import business_service

logger = logging.getLogger("mtokaa")


async def seed_businesses(path=None) -> int:
    """Seed demo businesses from JSON if the table is empty. Returns how many were added."""
    row = await fetch_one("SELECT COUNT(*) as cnt FROM businesses")
    if row and row["cnt"] > 0:
        logger.info("Businesses already seeded, skipping.")
        return 0

    with open(path or config.SEED_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    for item in data["businesses"]:
        business_id = await business_service.create_business({
            **item,
            "is_verified": item.get("is_verified", True),
        })
        for address in item.get("addresses", []):
            await business_service.add_address(business_id, **address)
        for service in item.get("services", []):
            await business_service.add_service(business_id, **service)
        for product in item.get("products", []):
            await business_service.add_product(business_id, **product)

    logger.info(f"Seeded {len(data['businesses'])} businesses.")
    return len(data["businesses"])
