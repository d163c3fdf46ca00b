import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Bot token, checked in main.py so services and tests import without it
BOT_TOKEN = os.getenv("BOT_TOKEN")

# Admin telegram IDs
ADMINS = [int(x.strip()) for x in os.getenv("ADMINS", "").split(",") if x.strip()]

# Database path
BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = Path(os.getenv("DB_PATH", BASE_DIR / "data" / "mtokaa.db"))
SEED_FILE = BASE_DIR / "data" / "businesses.json"

# Pagination
PAGE_SIZE = 8

# Radius options in km
RADIUS_OPTIONS = [5, 15, 50]

# Listings
FEATURED_LIMIT = 6
NEARBY_LIMIT = 20
DENSITY_RADIUS_KM = 10

# Reverse geocoding
GEOCODER_URL = os.getenv(
    "GEOCODER_URL", "https://api.bigdatacloud.net/data/reverse-geocode-client"
)
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", "8"))

# Location acquisition (milliseconds)
LOCATION_CACHE_KEY = "user_location"
LOCATION_CACHE_TTL_MS = 60 * 60 * 1000
REQUEST_TIMEOUT_MS = 10_000
REQUEST_MAX_AGE_MS = 5 * 60 * 1000
WATCH_TIMEOUT_MS = 30_000
WATCH_MAX_AGE_MS = 10 * 60 * 1000
# Chat users need time to tap "share location"
CHAT_LOCATION_TIMEOUT_MS = int(os.getenv("CHAT_LOCATION_TIMEOUT_MS", "120000"))

# Manual fallback when a user won't share a location
CITY_PRESETS = {
    "nairobi": ("Nairobi", -1.2921, 36.8219),
    "westlands": ("Westlands", -1.2676, 36.8108),
    "mombasa": ("Mombasa", -4.0435, 39.6682),
    "kisumu": ("Kisumu", -0.0917, 34.7680),
    "nakuru": ("Nakuru", -0.3031, 36.0800),
    "eldoret": ("Eldoret", 0.5143, 35.2698),
}

# Throttle settings
RATE_LIMIT_WINDOW = 10
RATE_LIMIT_MAX_HITS = 6

# Scheduler
CACHE_PURGE_INTERVAL = 600

BUSINESS_TYPES = ["garage", "mechanic", "parts"]

DEFAULT_LANGUAGE = "en"
