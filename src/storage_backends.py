"""
Key/value persistence backends for the journal.

Each persisted collection (entry log, device registry, schema version) is a
single JSON document stored under a fixed key.  Backends only move raw text;
parsing and recovery policy belong to the stores that own the keys.

  JsonFileBackend   one <key>.json file per key, atomic replace on write
  PostgresBackend   one row per key in wellness_kv (UPSERT)
  MemoryBackend     dict-backed, for tests and throwaway sessions
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

import psycopg2

from config import get_conn_str, get_data_dir, get_storage_kind

log = logging.getLogger("storage_backends")

KV_TABLE = "wellness_kv"

KV_SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {KV_TABLE} (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class MemoryBackend:
    """Dict-backed backend; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileBackend:
    """Stores each key as <data_dir>/<key>.json."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, self._path(key))
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class PostgresBackend:
    """Stores each key as one row of wellness_kv.

    The table is created by pipeline.migrations.ensure_startup_schema().
    """

    def __init__(self, conn_str: Optional[str] = None):
        self.conn_str = conn_str or get_conn_str()
        if not self.conn_str:
            log.error("POSTGRES_CONNECTION_STRING is missing or empty.")

    def read(self, key: str) -> Optional[str]:
        conn = psycopg2.connect(self.conn_str)
        try:
            with conn.cursor() as cur:
                cur.execute(f"SELECT value FROM {KV_TABLE} WHERE key = %s", (key,))
                row = cur.fetchone()
                return row[0] if row else None
        finally:
            conn.close()

    def write(self, key: str, value: str) -> None:
        conn = psycopg2.connect(self.conn_str)
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO {KV_TABLE} (key, value)
                    VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = NOW()
                    """,
                    (key, value),
                )
            conn.commit()
        finally:
            conn.close()


def build_backend(kind: Optional[str] = None):
    """Return the backend selected by WELLNESS_STORAGE (json|postgres|memory)."""
    kind = (kind or get_storage_kind()).lower()
    if kind == "json":
        return JsonFileBackend(get_data_dir())
    if kind == "postgres":
        return PostgresBackend()
    if kind == "memory":
        return MemoryBackend()
    raise ValueError(f"Unknown storage backend: {kind!r} (expected json, postgres or memory)")
