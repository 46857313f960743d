"""Environment-based configuration."""
import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

ENV_PREFIX = "ATTENDANCE_"

DEFAULT_STORE_FILE = "data/last_session.json"
DEFAULT_QR_MAX_SIZE = 400
DEFAULT_VIEWPORT_WIDTH = 500
DEFAULT_VIEWPORT_HEIGHT = 800

_ENV_LOADED = False
_ENV_LOCK = Lock()


def load_env(env_path: Path = Path(".env")) -> None:
    """
    Load ATTENDANCE_* settings from a .env file if present.

    Variables already set in the environment win over the file. The file is
    read at most once per process.
    """
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        for key, value in dotenv_values(env_path).items():
            if key.startswith(ENV_PREFIX) and value is not None and key not in os.environ:
                os.environ[key] = value

        _ENV_LOADED = True


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", name, raw, default)
        return default
    return value


def get_store_file() -> str:
    """Path of the JSON file holding the last generated session."""
    load_env()
    return os.getenv("ATTENDANCE_STORE_FILE") or DEFAULT_STORE_FILE


def get_qr_max_size() -> int:
    """Upper bound for the rendered QR code, in pixels."""
    load_env()
    return _get_int("ATTENDANCE_QR_MAX_SIZE", DEFAULT_QR_MAX_SIZE)


def get_viewport() -> tuple:
    """(width, height) used to size the QR code."""
    load_env()
    return (
        _get_int("ATTENDANCE_VIEWPORT_WIDTH", DEFAULT_VIEWPORT_WIDTH),
        _get_int("ATTENDANCE_VIEWPORT_HEIGHT", DEFAULT_VIEWPORT_HEIGHT),
    )
