from __future__ import annotations

import atexit
import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .analytics.controller import register as register_analytics
from .common.http import register_error_handlers
from .container import Container, build_container
from .reports.controller import register as register_reports
from .storage.controller import register as register_database
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        data_dir = getattr(settings, "DATA_DIR")
        logger.info("[atm-maintenance] settings=%s data_dir=%s", settings_module, data_dir)
        container = build_container(
            data_dir=data_dir,
            poll_interval=float(getattr(settings, "POLL_INTERVAL_SECONDS", 1.0)),
            sync_batch_size=int(getattr(settings, "SYNC_BATCH_SIZE", 450)),
            auto_seed=bool(getattr(settings, "AUTO_SEED_DATA", False)),
            admin_page_size=int(getattr(settings, "ADMIN_PAGE_SIZE", 20)),
            bank_page_size=int(getattr(settings, "BANK_PAGE_SIZE", 24)),
        )
        container.start()
        atexit.register(container.close)

    app.extensions["atm_container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_reports(app, container)
    register_analytics(app, container)
    register_database(app, container)

    return app
