"""Persistence gateway for mastery records.

The tracker hands a plain ``{item_id: {field: value}}`` mapping to a
``ProgressStore`` after every change and reads it back once at startup.
Stores never raise: a failed read yields an empty mapping and a failed
write is logged and dropped, so practice keeps working without durability.
"""
import json
import sqlite3
from datetime import datetime
from typing import Protocol

from loguru import logger

from toeic_tutor.config import DEFAULT_STORAGE_KEY
from toeic_tutor.db import get_value, init_db, set_value


class ProgressStore(Protocol):
    def load(self) -> dict: ...

    def save(self, progress: dict) -> None: ...


class MemoryProgressStore:
    """Keeps the serialized progress in process memory."""

    def __init__(self, initial: dict | None = None):
        self._payload = json.dumps(initial or {})
        self.saves = 0

    def load(self) -> dict:
        return json.loads(self._payload)

    def save(self, progress: dict) -> None:
        self._payload = json.dumps(progress)
        self.saves += 1


class SqliteProgressStore:
    """Stores the whole progress mapping as one JSON value in the kv_store table."""

    def __init__(self, db_path: str, key: str = DEFAULT_STORAGE_KEY):
        self.db_path = db_path
        self.key = key
        self._ready = False

    def _ensure_schema(self) -> None:
        if not self._ready:
            init_db(self.db_path)
            self._ready = True

    def load(self) -> dict:
        try:
            self._ensure_schema()
            raw = get_value(self.db_path, self.key)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Could not read saved progress from {self.db_path}: {e}")
            return {}
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Saved progress under '{self.key}' is corrupt, starting fresh: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Saved progress under '{self.key}' is not a mapping, starting fresh")
            return {}
        return data

    def save(self, progress: dict) -> None:
        try:
            self._ensure_schema()
            set_value(self.db_path, self.key, json.dumps(progress), datetime.now().isoformat())
        except (sqlite3.Error, OSError, TypeError) as e:
            logger.error(f"Could not save progress to {self.db_path}: {e}")
