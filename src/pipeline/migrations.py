"""Startup migration and audit helpers for the Postgres storage backend."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import psycopg2

from config import get_conn_str
from constants import ENTRIES_KEY, SCHEMA_VERSION, SCHEMA_VERSION_KEY
from storage_backends import KV_SCHEMA_SQL, KV_TABLE

log = logging.getLogger("pipeline.migrations")

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    KV_TABLE: ["key", "value", "updated_at"],
}


def _resolve_conn_str(conn_str: Optional[str]) -> str:
    return (conn_str or get_conn_str() or "").strip()


def ensure_startup_schema(conn_str: Optional[str] = None) -> None:
    """Run idempotent startup migrations before the journal opens."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        raise RuntimeError("POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured")

    conn = psycopg2.connect(cs)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute(KV_SCHEMA_SQL)
            cur.execute(
                f"""
                ALTER TABLE IF EXISTS {KV_TABLE}
                ADD COLUMN IF NOT EXISTS updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                """
            )
            # Logs written before versioning existed are schema 1.
            cur.execute(
                f"""
                INSERT INTO {KV_TABLE} (key, value)
                SELECT %s, %s
                WHERE EXISTS (SELECT 1 FROM {KV_TABLE} WHERE key = %s)
                ON CONFLICT (key) DO NOTHING
                """,
                (SCHEMA_VERSION_KEY, json.dumps(1), ENTRIES_KEY),
            )
    finally:
        conn.close()

    log.info("Startup migrations completed (current schema version %d).", SCHEMA_VERSION)


def schema_audit(conn_str: Optional[str] = None) -> Dict[str, Any]:
    """Return table/column audit data for runtime inspection."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        return {
            "ok": False,
            "error": "POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured",
            "tables": {},
            "missing_tables": [],
        }

    out: Dict[str, Any] = {"ok": True, "tables": {}, "missing_tables": [], "schema_version": None}
    conn = psycopg2.connect(cs)
    try:
        with conn.cursor() as cur:
            for table, expected in REQUIRED_COLUMNS.items():
                cur.execute(
                    """
                    SELECT column_name
                    FROM information_schema.columns
                    WHERE table_schema = 'public' AND table_name = %s
                    ORDER BY ordinal_position
                    """,
                    (table,),
                )
                cols = [r[0] for r in cur.fetchall()]
                if not cols:
                    out["missing_tables"].append(table)
                out["tables"][table] = {
                    "exists": bool(cols),
                    "columns": cols,
                    "missing_columns": [c for c in expected if c not in cols],
                }

            if not out["missing_tables"]:
                cur.execute(f"SELECT value FROM {KV_TABLE} WHERE key = %s", (SCHEMA_VERSION_KEY,))
                row = cur.fetchone()
                if row:
                    out["schema_version"] = json.loads(row[0])

        out["ok"] = not out["missing_tables"] and not any(
            info["missing_columns"] for info in out["tables"].values()
        )
        return out
    finally:
        conn.close()
