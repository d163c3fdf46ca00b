"""Durable key-value cache for user locations (SQLite `kv_store` table)."""
import json
import logging
import sqlite3

from mtokaa.db.base import fetch_one, fetch_all, execute_write, execute_write_rowcount
from mtokaa.services.errors import StorageFailure

logger = logging.getLogger("mtokaa")


class LocationStore:
    """get / set / remove over kv_store; any SQLite failure becomes StorageFailure."""

    async def get(self, key: str) -> str | None:
        try:
            row = await fetch_one("SELECT value FROM kv_store WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as e:
            raise StorageFailure(f"read {key}: {e}") from e
        return row["value"] if row else None

    async def set(self, key: str, value: str):
        try:
            await execute_write(
                """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, datetime('now'))
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                (key, value),
            )
        except (sqlite3.Error, OSError) as e:
            raise StorageFailure(f"write {key}: {e}") from e

    async def remove(self, key: str):
        try:
            await execute_write("DELETE FROM kv_store WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as e:
            raise StorageFailure(f"remove {key}: {e}") from e

    async def purge_prefix_older_than(self, prefix: str, cutoff_ms: int) -> int:
        """
        Delete cached snapshots under `prefix` whose timestamp is before `cutoff_ms`.
        Unparseable entries are deleted too. Returns the number of removed keys.
        """
        try:
            rows = await fetch_all(
                "SELECT key, value FROM kv_store WHERE key LIKE ?", (f"{prefix}%",)
            )
        except (sqlite3.Error, OSError) as e:
            raise StorageFailure(f"scan {prefix}: {e}") from e

        removed = 0
        for row in rows:
            try:
                timestamp = json.loads(row["value"]).get("timestamp")
            except (ValueError, AttributeError):
                timestamp = None
            if isinstance(timestamp, (int, float)) and timestamp >= cutoff_ms:
                continue
            try:
                removed += await execute_write_rowcount(
                    "DELETE FROM kv_store WHERE key = ?", (row["key"],)
                )
            except (sqlite3.Error, OSError) as e:
                raise StorageFailure(f"purge {row['key']}: {e}") from e

        if removed:
            logger.info(f"Purged {removed} expired cached location(s)")
        return removed
