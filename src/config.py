"""
Configuration loaded from .env / the process environment.

Values are read on every call so tests can patch os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


def get_conn_str() -> str:
    """Return PostgreSQL connection string.

    Checks POSTGRES_CONNECTION_STRING first, falls back to DATABASE_URL
    (Heroku standard).  Normalises postgres:// to postgresql:// for psycopg2.
    """
    url = (os.getenv("POSTGRES_CONNECTION_STRING") or os.getenv("DATABASE_URL") or "").strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def get_storage_kind() -> str:
    return os.getenv("WELLNESS_STORAGE", "json").strip().lower() or "json"


def get_data_dir() -> Path:
    return Path(os.path.expanduser(os.getenv("WELLNESS_DATA_DIR", "~/.wellness_journal")))


def get_ai_provider() -> str:
    return os.getenv("WELLNESS_AI_PROVIDER", "gemini").strip().lower() or "none"


def get_gemini_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


def get_gemini_model() -> str:
    return os.getenv("GEMINI_MODEL", "gemini-1.5-flash")


def ai_notes_enabled() -> bool:
    return os.getenv("WELLNESS_AI_NOTES", "0").strip() == "1"


def get_log_level() -> str:
    return os.getenv("WELLNESS_LOG_LEVEL", "INFO").upper()


def get_frontend_origins() -> List[str]:
    raw = os.getenv("FRONTEND_ORIGINS", "")
    return [o.strip() for o in raw.split(",") if o.strip()] or [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
