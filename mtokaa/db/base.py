import asyncio
import aiosqlite
from contextlib import asynccontextmanager
from pathlib import Path

from mtokaa import config

_write_lock = asyncio.Lock()


def _db_path() -> Path:
    return Path(config.DB_PATH)


def _db_dir_ensure():
    """Ensure the directory for the DB file exists."""
    _db_path().parent.mkdir(parents=True, exist_ok=True)


async def get_db() -> aiosqlite.Connection:
    """Open a new aiosqlite connection with the PRAGMAs every caller relies on."""
    _db_dir_ensure()
    db = await aiosqlite.connect(_db_path())
    db.row_factory = aiosqlite.Row

    pragmas = [
        "PRAGMA journal_mode=WAL",
        "PRAGMA synchronous=NORMAL",
        "PRAGMA busy_timeout=10000",
        "PRAGMA foreign_keys=ON",
        "PRAGMA temp_store=MEMORY",
        "PRAGMA cache_size=-2000",             # ~2MB RAM
    ]
    for pragma in pragmas:
        await db.execute(pragma)

    return db


async def execute_write(query: str, params: tuple = ()):
    """Execute a single write query under the write lock."""
    async with _write_lock:
        db = await get_db()
        try:
            await db.execute(query, params)
            await db.commit()
        finally:
            await db.close()


async def execute_write_returning(query: str, params: tuple = ()):
    """Execute a write query and return lastrowid."""
    async with _write_lock:
        db = await get_db()
        try:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.lastrowid
        finally:
            await db.close()


async def execute_write_rowcount(query: str, params: tuple = ()) -> int:
    """Execute a write query and return the number of affected rows."""
    async with _write_lock:
        db = await get_db()
        try:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount
        finally:
            await db.close()


@asynccontextmanager
async def write_transaction():
    """
    Hold the write lock over one connection for several statements.
    Commits when the block exits normally, otherwise the work is rolled back.
    """
    async with _write_lock:
        db = await get_db()
        try:
            yield db
            await db.commit()
        finally:
            await db.close()


async def fetch_one(query: str, params: tuple = ()):
    """Fetch a single row."""
    db = await get_db()
    try:
        cursor = await db.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None
    finally:
        await db.close()


async def fetch_all(query: str, params: tuple = ()):
    """Fetch all rows."""
    db = await get_db()
    try:
        cursor = await db.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]
    finally:
        await db.close()


async def init_db():
    """Create all tables."""
    from mtokaa.db.models import SCHEMA_SQL
    _db_dir_ensure()
    db = await get_db()
    try:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    finally:
        await db.close()
