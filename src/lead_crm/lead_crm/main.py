from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .activity.controller import register as register_activity
from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEFAULT_TIMEZONE
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .stats.controller import register as register_stats
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Passing a ready ``container`` skips all database setup (used by tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
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
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            timezone=getattr(settings, "APP_TIMEZONE", DEFAULT_TIMEZONE),
        )

    app.extensions["lead_crm"] = container

    register_users(app, container)
    register_attendance(app, container)
    register_stats(app, container)
    register_activity(app, container)

    return app
