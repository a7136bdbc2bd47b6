"""Durable storage of per-chapter quiz performance.

The whole mapping is kept as one serialized value in a single named slot,
read and written as a unit.
"""
import json
import sqlite3
from datetime import datetime
from typing import Protocol

from loguru import logger

from edufinder.db import DEFAULT_DB_PATH, get_connection, init_db
from edufinder.errors import PersistenceCorruption
from edufinder.models import ChapterPerformance

PERFORMANCE_KEY = "edufinder_user_performance"


class ProgressStore(Protocol):
    def load(self) -> dict: ...

    def save(self, mapping: dict) -> None: ...

    def clear(self) -> None: ...


def encode_performance(mapping: dict) -> str:
    return json.dumps([perf.to_dict() for perf in mapping.values()])


def decode_performance(raw: str) -> dict:
    """Parse a stored value into a topic -> ChapterPerformance mapping."""
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("expected a JSON array")
        mapping = {}
        for item in items:
            perf = ChapterPerformance.from_dict(item)
            mapping[perf.topic()] = perf
        return mapping
    except (ValueError, KeyError, TypeError, RecursionError) as e:
        raise PersistenceCorruption(str(e)) from e


def _load_or_empty(raw) -> dict:
    if raw is None:
        return {}
    try:
        return decode_performance(raw)
    except PersistenceCorruption as e:
        logger.warning(f"Discarding unreadable performance data: {e}")
        return {}


class SqliteProgressStore:
    """Performance history in the ``app_state`` table of the app database."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH, key: str = PERFORMANCE_KEY):
        self.db_path = db_path
        self.key = key
        init_db(db_path)

    def _read_raw(self):
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("SELECT value FROM app_state WHERE key = ?", (self.key,)).fetchone()
        finally:
            conn.close()
        return row["value"] if row else None

    def load(self) -> dict:
        try:
            raw = self._read_raw()
        except sqlite3.OperationalError as e:
            # Undecodable bytes in the slot surface here, not in json.loads.
            logger.warning(f"Discarding unreadable performance data: {e}")
            return {}
        return _load_or_empty(raw)

    def save(self, mapping: dict) -> None:
        value = encode_performance(mapping)
        conn = get_connection(self.db_path)
        with conn:
            conn.execute(
                "INSERT INTO app_state (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                (self.key, value, datetime.now().isoformat()),
            )
        conn.close()

    def clear(self) -> None:
        conn = get_connection(self.db_path)
        with conn:
            conn.execute("DELETE FROM app_state WHERE key = ?", (self.key,))
        conn.close()


class MemoryProgressStore:
    """In-process store; keeps the encoded form so it decodes like the real one."""

    def __init__(self, raw: str = None):
        self.raw = raw

    def load(self) -> dict:
        return _load_or_empty(self.raw)

    def save(self, mapping: dict) -> None:
        self.raw = encode_performance(mapping)

    def clear(self) -> None:
        self.raw = None
