from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .core.settings import EngineSettings
from .database.bootstrap import apply_schema, apply_seed_sql, missing_tables
from .database.connection import DBConfig

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app() -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    db_config = getattr(settings, "DB_CONFIG")

    logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        missing = missing_tables(db_config)
        if missing:
            logger.warning("schema incomplete, missing tables: %s", ", ".join(missing))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")

    container = build_container(db_config=db_config, settings=EngineSettings.from_module(settings))
    register_attendance(app, container)

    return app
