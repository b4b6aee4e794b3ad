# backend/calsched/config.py
"""Runtime settings read from the environment (.env is loaded by the package init)."""

import os
from pathlib import Path


def _clean(s: str | None) -> str | None:
    return s.strip().rstrip("/") if s and s.strip() else None


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


# Database
DATABASE_URL = os.getenv("DATABASE_URL")
SQLITE_FALLBACK_PATH = Path(__file__).resolve().parents[1] / "calsched.db"

# CORS
FRONTEND_ORIGIN = _clean(os.getenv("FRONTEND_ORIGIN")) or "http://localhost:5173"
EXTRA_CORS_ORIGINS = [x for x in (_clean(p) for p in os.getenv("EXTRA_CORS_ORIGINS", "").split(",")) if x]

# Run alembic upgrade on startup when set to "1"
AUTO_MIGRATE = os.getenv("AUTO_MIGRATE") == "1"

# Time axis scale: 4rem per hour at a 16px root font
HOUR_HEIGHT_PX = _int("HOUR_HEIGHT_PX", 64)
MIN_BLOCK_HEIGHT_PX = _int("MIN_BLOCK_HEIGHT_PX", 32)

# 0=Monday ... 6=Sunday (date.weekday() numbering)
WEEK_START_DAY = _int("WEEK_START_DAY", 0)

HOLIDAY_COUNTRY = os.getenv("HOLIDAY_COUNTRY", "JP")
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Tokyo")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
