import asyncio
import logging

from mtokaa.config import CACHE_PURGE_INTERVAL, LOCATION_CACHE_KEY, LOCATION_CACHE_TTL_MS
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.location_service import now_ms
from mtokaa.services.location_store import LocationStore

logger = logging.getLogger("mtokaa")


async def purge_expired_locations(store: LocationStore) -> int:
    """Drop cached user locations older than the cache TTL."""
    return await store.purge_prefix_older_than(
        f"{LOCATION_CACHE_KEY}:", now_ms() - LOCATION_CACHE_TTL_MS
    )


async def scheduler_loop(store: LocationStore, hub: LocationHub | None = None,
                         interval: float = CACHE_PURGE_INTERVAL):
    logger.info("Scheduler loop started")
    while True:
        try:
            await purge_expired_locations(store)
            if hub is not None:
                hub.evict_idle()
        except Exception as e:
            logger.error(f"Scheduler error: {e}")

        await asyncio.sleep(interval)


def start_scheduler(store: LocationStore, hub: LocationHub | None = None) -> asyncio.Task:
    return asyncio.create_task(scheduler_loop(store, hub))
