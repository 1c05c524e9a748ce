from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from loguru import logger

from config import get_settings_module

from .core.constants import (
    DEFAULT_CHECKIN_BASE_URL,
    DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES,
    DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES,
    DEFAULT_COUNT_LATE_AS_ATTENDED,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_QR_VALID_MINUTES,
)
from .core.log import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .refunds.controller import register as register_refunds

_DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Pass a prebuilt `container` to skip database bootstrap (tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings={} db={}@{}:{}/{}",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=_DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables={})", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=_DATABASE_DIR / "seed.sql")

        container = build_container(
            db_config=db_config,
            qr_valid_minutes=int(getattr(settings, "QR_VALID_MINUTES", DEFAULT_QR_VALID_MINUTES)),
            late_threshold_minutes=int(getattr(settings, "LATE_THRESHOLD_MINUTES", DEFAULT_LATE_THRESHOLD_MINUTES)),
            require_start_time=bool(getattr(settings, "REQUIRE_START_TIME", False)),
            checkin_opens_before_minutes=int(
                getattr(settings, "CHECKIN_OPENS_BEFORE_MINUTES", DEFAULT_CHECKIN_OPENS_BEFORE_MINUTES)
            ),
            checkin_closes_after_minutes=int(
                getattr(settings, "CHECKIN_CLOSES_AFTER_MINUTES", DEFAULT_CHECKIN_CLOSES_AFTER_MINUTES)
            ),
            count_late_as_attended=bool(getattr(settings, "COUNT_LATE_AS_ATTENDED", DEFAULT_COUNT_LATE_AS_ATTENDED)),
            checkin_base_url=str(getattr(settings, "CHECKIN_BASE_URL", DEFAULT_CHECKIN_BASE_URL)),
        )

    register_attendance(app, container)
    register_refunds(app, container)

    return app
