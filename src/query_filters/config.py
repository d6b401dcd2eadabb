"""
Runtime configuration read from the environment.
"""

import logging
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./query_filters.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
