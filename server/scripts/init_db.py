"""
Create the marketplace tables on the configured SQL database.

Usage:
    python scripts/init_db.py --seed
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jamakers.config import get_settings
from jamakers.db_postgres import PostgresDbClient
from jamakers.seed import seed_demo_data

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create JA Makers database tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Load the demo fixtures after creating the tables",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    database_url = args.database_url or settings.database_url
    if not database_url:
        logger.error("No database configured. Set DATABASE_URL or pass --database-url.")
        return 1

    # Tables are created by the client constructor.
    db = PostgresDbClient(database_url, settings.database_pool_size)
    if args.seed:
        if db.get_user("demo-admin") is not None:
            logger.info("Demo data already present, skipping seed")
        else:
            seed_demo_data(db)
    logger.info("Database ready")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
