from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
# Same import names as the installed distribution when run from a checkout.
for path in (REPO_ROOT, REPO_ROOT / "src" / "attendance_engine"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from attendance_engine.database.bootstrap import apply_schema, apply_seed_sql, missing_tables
from attendance_engine.database.connection import DBConfig

DATABASE_DIR = REPO_ROOT / "database"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the attendance engine tables.")
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql demo data")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")

    missing = missing_tables(db_config)
    target = DBConfig.from_dict(db_config).describe()
    if missing:
        print(f"FAILED: {target} is missing tables: {', '.join(missing)}")
        return 1
    print(f"OK: schema ready on {target} (seeded={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
