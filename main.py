"""
main.py
-------
Entry point for the college library records core.

Responsibilities:
    - Validate mandatory configuration (fail fast).
    - Initialize the database connection pool and schema.
    - Verify connectivity to the store.

Request handling lives in the web application that imports the
repositories and services; this script only prepares the database.
"""

import sys

from config import validate_config
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from db.store import get_store
from exceptions import ConfigError
from utils.logger import get_logger

logger = get_logger(__name__)


def main() -> int:
    """Prepare the database. Returns a process exit code."""

    # ── 1. Configuration ──────────────────────────────────
    try:
        validate_config()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    # ── 2. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    try:
        create_tables()

        # ── 3. Connectivity check ─────────────────────────
        if not get_store().ping():
            return 1
        logger.info("Library records store is ready.")
        return 0
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
