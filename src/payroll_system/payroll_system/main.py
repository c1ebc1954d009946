from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_passwords, list_tables

from .common.http import register_error_handlers
from .container import build_container
from .attendance.controller import register as register_attendance
from .employees.controller import register as register_employees
from .leaves.controller import register as register_leaves
from .payroll.controller import register as register_payroll
from .rules.controller import register as register_rules
from .schedules.controller import register as register_schedules

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Any] = None) -> Flask:
    """Application factory.

    Pass a ready container to skip the database wiring (tests do this).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["BUSINESS_TIMEZONE"] = getattr(settings, "BUSINESS_TIMEZONE", None)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_passwords(db_config)
            logger.info("demo seed ready")

        container = build_container(db_config=db_config, timezone=app.config["BUSINESS_TIMEZONE"])

    register_error_handlers(app)
    register_employees(app, container)
    register_schedules(app, container)
    register_rules(app, container)
    register_attendance(app, container)
    register_payroll(app, container)
    register_leaves(app, container)

    return app
