from __future__ import annotations

import argparse
import json
import logging
import os
import sys

# Allow running from the repository root or from backend/
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(os.getcwd())

from sqlalchemy import inspect

from app.core.config import settings
from app.db.session import Database
from app.services.schema_sync import sync_schema


def run(*, database_url: str | None, show_columns: bool) -> int:
    database = Database(database_url) if database_url else Database.from_settings()
    try:
        engine = database.connect()
        summary = sync_schema(engine)
        print(json.dumps(summary, indent=2))

        insp = inspect(engine)
        print("tables:", ", ".join(sorted(insp.get_table_names())))
        if show_columns:
            for col in insp.get_columns("assets"):
                print(f"  {col['name']:<12} {col['type']}  nullable={col['nullable']}")
    except Exception as e:
        logging.getLogger(__name__).error("schema sync failed: %s", getattr(e, "cause", None) or e)
        return 1
    finally:
        database.close()
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    p = argparse.ArgumentParser(description="Synchronize the database schema in the foreground")
    p.add_argument("--database-url", default=None, help=f"Override DATABASE_URL (default: {settings.database_url.split('@')[-1]})")
    p.add_argument("--show-columns", action="store_true", help="Print the assets table structure afterwards")
    args = p.parse_args()

    sys.exit(run(database_url=args.database_url, show_columns=bool(args.show_columns)))


if __name__ == "__main__":
    main()
