import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler

from mtokaa.loader import bot, dp
from mtokaa.db.base import init_db
from mtokaa.db.seed import seed_businesses
from mtokaa.middlewares.context import ContextMiddleware
from mtokaa.middlewares.rate_limit import RateLimitMiddleware
from mtokaa.scheduler import start_scheduler
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.geocoding_service import ReverseGeocoder
from mtokaa.services.location_store import LocationStore

# Import routers
from mtokaa.handlers import common, location, nearby, featured, business


# Create data directory for logs if not exists
os.makedirs("data", exist_ok=True)

# 1. Console handler (INFO)
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

# 2. Rotating file handler for warnings and errors only
file_handler = RotatingFileHandler(
    filename="data/errors.log",
    maxBytes=2 * 1024 * 1024,  # 2MB
    backupCount=5,
    encoding="utf-8"
)
file_handler.setLevel(logging.WARNING)
file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

logging.basicConfig(
    level=logging.INFO,
    handlers=[console_handler, file_handler]
)

# Noise reduction
logging.getLogger("aiogram").setLevel(logging.WARNING)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("mtokaa")


async def on_startup(store: LocationStore, hub: LocationHub):
    logger.info("Initializing database...")
    await init_db()
    await seed_businesses()
    start_scheduler(store, hub)
    logger.info("Database ready and Scheduler started.")


def register_routers():
    dp.include_router(common.router)
    dp.include_router(location.router)
    dp.include_router(nearby.router)
    dp.include_router(featured.router)
    dp.include_router(business.router)


def register_middlewares(hub: LocationHub):
    context = ContextMiddleware(hub)
    dp.callback_query.middleware(RateLimitMiddleware())
    dp.message.middleware(context)
    dp.edited_message.middleware(context)
    dp.callback_query.middleware(context)


async def main():
    store = LocationStore()
    geocoder = ReverseGeocoder()
    hub = LocationHub(geocoder=geocoder, store=store)

    await on_startup(store, hub)
    register_middlewares(hub)
    register_routers()

    logger.info("Bot starting...")
    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        hub.stop_all()
        await geocoder.aclose()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
