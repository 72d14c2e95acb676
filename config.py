"""
config.py - Environment-driven settings.

Values come from the process environment, optionally seeded from a local
`.env` file. Variables already present in the environment always win.

    LARGE_FILE_THRESHOLD  row count above which validation warns (10000)
    PREVIEW_MAX_ROWS      rows returned by the API preview (100)
    MAX_UPLOAD_BYTES      upload size limit for the API (50 MiB)
    LOG_LEVEL             root log level name (INFO)
    LOG_JSON              emit JSON-like log lines (false)
    HOST / PORT           uvicorn bind address (0.0.0.0 / 8000)
    DEBUG                 return full row sets from the API (false)
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from logging_config import get_logger

logger = get_logger(__name__)

try:
    load_dotenv()
except UnicodeDecodeError:
    # Fallback for legacy Windows-encoded .env files.
    load_dotenv(encoding="cp1252")

DEFAULT_LARGE_FILE_THRESHOLD = 10_000
DEFAULT_PREVIEW_MAX_ROWS = 100
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_PORT = 8000

TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime settings for the CLI and the HTTP API."""

    model_config = ConfigDict(frozen=True)

    large_file_threshold: int = DEFAULT_LARGE_FILE_THRESHOLD
    preview_max_rows: int = DEFAULT_PREVIEW_MAX_ROWS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    debug: bool = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            "config_warning | name=%s | value=%r | reason='not an integer' | fallback=%s",
            name,
            raw,
            default,
        )
        return default
    if value <= 0:
        logger.warning(
            "config_warning | name=%s | value=%r | reason='must be positive' | fallback=%s",
            name,
            raw,
            default,
        )
        return default
    return value


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        large_file_threshold=_env_int("LARGE_FILE_THRESHOLD", DEFAULT_LARGE_FILE_THRESHOLD),
        preview_max_rows=_env_int("PREVIEW_MAX_ROWS", DEFAULT_PREVIEW_MAX_ROWS),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
        log_json=_env_flag("LOG_JSON"),
        host=os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0",
        port=_env_int("PORT", DEFAULT_PORT),
        debug=_env_flag("DEBUG"),
    )
