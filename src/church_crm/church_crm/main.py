from __future__ import annotations

import importlib
from typing import Optional

import structlog
from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.http import register_error_handlers
from .common.logging import configure_logging
from .container import Container, build_container
from .storage.bootstrap import apply_schema
from .attendance.controller import register as register_attendance
from .followups.controller import register as register_followups
from .people.controller import register as register_people
from .programs.controller import register as register_programs
from .tally.controller import register as register_tallies

logger = structlog.get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(
        log_level=getattr(settings, "LOG_LEVEL", "INFO"),
        json_logs=bool(getattr(settings, "JSON_LOGS", True)),
    )

    store_backend = getattr(settings, "STORE_BACKEND", "memory")
    db_config = getattr(settings, "DB_CONFIG", None)
    if container is None:
        if store_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
        container = build_container(store_backend=store_backend, db_config=db_config)

    logger.info("app_started", settings=settings_module, store_backend=store_backend)

    register_error_handlers(app)
    register_people(app, container)
    register_programs(app, container)
    register_attendance(app, container)
    register_tallies(app, container)
    register_followups(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
