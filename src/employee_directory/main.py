from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import Container, build_container
from .core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .database.bootstrap import apply_schema, ensure_default_users, list_tables
from .employees.controller import register as register_employees
from .users.controller import register as register_users
from .web import register_error_handlers

LOGGER = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")
    max_page_size = int(getattr(settings, "MAX_PAGE_SIZE", MAX_PAGE_SIZE))
    app.config["DEFAULT_PAGE_SIZE"] = int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE))

    LOGGER.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            LOGGER.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_default_users(db_config)
        container = build_container(db_config=db_config, max_page_size=max_page_size)

    register_users(app, container)
    register_employees(app, container)
    register_error_handlers(app)

    return app
