# scoring_api/config.py
from __future__ import annotations

import logging
import os
from typing import Tuple

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = _get_env(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


# -------------------------
# Match format defaults
# -------------------------
DEFAULT_TOTAL_OVERS: int = _get_env_int("DEFAULT_TOTAL_OVERS", 20)
DEFAULT_BALLS_PER_OVER: int = _get_env_int("DEFAULT_BALLS_PER_OVER", 6)

# Formats that get a per-format career summary
TRACKED_FORMATS: Tuple[str, ...] = _get_env_list("TRACKED_FORMATS", "T20,ODI")


# -------------------------
# Scoring engine
# -------------------------
# Pre-ball snapshots kept per innings for live undo
UNDO_LOG_LIMIT: int = _get_env_int("UNDO_LOG_LIMIT", 12)

# If 1, mutating requests must carry X-User-Id matching the match creator
REQUIRE_SCORER_ID: bool = _get_env("REQUIRE_SCORER_ID", "1") == "1"


# -------------------------
# Logging
# -------------------------
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if DEFAULT_TOTAL_OVERS <= 0:
        raise RuntimeError("DEFAULT_TOTAL_OVERS must be positive")

    if DEFAULT_BALLS_PER_OVER <= 0:
        raise RuntimeError("DEFAULT_BALLS_PER_OVER must be positive")

    if UNDO_LOG_LIMIT <= 0:
        raise RuntimeError("UNDO_LOG_LIMIT must be positive")

    if not isinstance(logging.getLevelName(LOG_LEVEL), int):
        raise RuntimeError(f"LOG_LEVEL '{LOG_LEVEL}' is not a known logging level")
