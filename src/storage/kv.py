"""Key/value persistence: durable, last-write-wins JSON records keyed by logical name."""

import json
import sqlite3
from typing import Any

import storage.db_config as db_config
from logger import logger

__all__ = ["PersistenceError", "get_json", "set_json", "delete_key"]


class PersistenceError(RuntimeError):
    """A read or write against the local store failed."""


def _ensure_conn():
    if db_config.conn is None:
        raise PersistenceError("Database is not initialised, call init_db() first")


async def get_json(key: str, default: Any = None) -> Any:
    """Return the decoded record for `key`, or `default` when absent."""
    _ensure_conn()
    try:
        async with db_config.conn.execute(
            "SELECT value_json FROM kv_records WHERE record_key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to read {key}: {e}") from e

    if row is None:
        return default
    try:
        return json.loads(row[0])
    except json.JSONDecodeError:
        logger.warning(f"Record {key} is not valid JSON, ignoring it")
        return default


async def set_json(key: str, value: Any) -> None:
    _ensure_conn()
    try:
        payload = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Record {key} is not serialisable: {e}") from e

    try:
        await db_config.conn.execute(
            "INSERT INTO kv_records (record_key, value_json, updated_at_utc) VALUES (?, ?, CURRENT_TIMESTAMP) "
            "ON CONFLICT(record_key) DO UPDATE SET value_json = excluded.value_json, updated_at_utc = CURRENT_TIMESTAMP",
            (key, payload),
        )
        await db_config.conn.commit()
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to write {key}: {e}") from e
    logger.trace(f"Stored {key} ({len(payload)} bytes)")


async def delete_key(key: str) -> None:
    _ensure_conn()
    try:
        await db_config.conn.execute("DELETE FROM kv_records WHERE record_key = ?", (key,))
        await db_config.conn.commit()
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to delete {key}: {e}") from e
    logger.trace(f"Deleted {key}")
