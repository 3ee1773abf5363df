"""
Runtime settings, read from the environment (and a local .env file).
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _get_float(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={value!r}, using {default}")
        return default


def _get_int(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={value!r}, using {default}")
        return default


def _get_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- CANVAS UPSTREAM ---
CANVAS_REQUEST_TIMEOUT = _get_float("CANVAS_REQUEST_TIMEOUT", 30.0)

# --- HTTP SERVER ---
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()] or ["*"]
HOST = os.getenv("HOST", "127.0.0.1")
PORT = _get_int("PORT", 5000)
DEBUG = _get_bool("FLASK_DEBUG")

# --- LOGGING ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
if not isinstance(logging.getLevelName(LOG_LEVEL), int):
    LOG_LEVEL = "INFO"
