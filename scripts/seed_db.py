from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.payroll_system.payroll_system.database.bootstrap import apply_seed_sql, ensure_demo_passwords

logger = logging.getLogger("seed_db")


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo business, employees and leave data.")
    parser.add_argument("--password", default="employee123", help="password set on seeded employees")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    updated = ensure_demo_passwords(db_config, demo_password=args.password)

    logger.info(
        "seeded %s@%s:%s/%s (%d demo passwords set)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        updated,
    )


if __name__ == "__main__":
    main()
