"""
Check that the configured database accepts connections.

Exits non-zero when the connection fails, so it can gate deploys.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from jamakers.config import get_settings

logger = logging.getLogger(__name__)


def check(database_url: str) -> bool:
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database connection failed: %s", exc)
        return False
    finally:
        engine.dispose()
    logger.info(
        "Connected to %s", engine.url.render_as_string(hide_password=True)
    )
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Check the database connection")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    database_url = args.database_url or get_settings().database_url
    if not database_url:
        logger.error("DATABASE_URL is not set")
        return 1
    return 0 if check(database_url) else 1


if __name__ == "__main__":
    raise SystemExit(main())
