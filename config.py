"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.

Secrets have no fallback values: call `validate_config()` at startup
to fail fast when one is missing.
"""

import os
from dotenv import load_dotenv

from exceptions import ConfigError

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "college_library")
DB_USER: str = os.getenv("DB_USER", "library_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = os.getenv("DATABASE_URL") or (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))

# ── Blob storage ──────────────────────────────────────────
STORAGE_URL: str = os.getenv("STORAGE_URL", "").rstrip("/")
STORAGE_KEY: str = os.getenv("STORAGE_KEY", "")
BACKEND_SECRET: str = os.getenv("BACKEND_SECRET", "")
STORAGE_TIMEOUT_SECONDS: float = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "30"))

# ── Library cards ─────────────────────────────────────────
CARD_NUMBER_MAX_ATTEMPTS: int = int(os.getenv("CARD_NUMBER_MAX_ATTEMPTS", "5"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

_REQUIRED = ("STORAGE_URL", "STORAGE_KEY", "BACKEND_SECRET")


def validate_config() -> None:
    """
    Check that every mandatory setting is present.

    Raises:
        ConfigError: Listing all missing variables.
    """
    missing = [name for name in _REQUIRED if not globals().get(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
    if DB_POOL_MIN < 1 or DB_POOL_MAX < DB_POOL_MIN:
        raise ConfigError(
            f"Invalid pool size: DB_POOL_MIN={DB_POOL_MIN}, DB_POOL_MAX={DB_POOL_MAX}"
        )
    if CARD_NUMBER_MAX_ATTEMPTS < 1:
        raise ConfigError("CARD_NUMBER_MAX_ATTEMPTS must be at least 1")
