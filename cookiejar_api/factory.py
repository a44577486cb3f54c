"""Flask application factory."""
from __future__ import annotations

import logging
from typing import Optional

from flask import Flask

from .config import JarConfig
from .routes.api import api_bp
from .services import CookieStore, HTTPClient


def create_app(config: Optional[JarConfig] = None) -> Flask:
    config = config or JarConfig.from_env()
    logging.basicConfig(level=config.log_level)

    app = Flask(__name__)

    cookie_store = CookieStore(max_attempts=config.max_save_attempts)
    cookie_store.load(config.path)

    app.config["JAR_CONFIG"] = config
    app.config["COOKIE_STORE"] = cookie_store
    app.config["HTTP_CLIENT"] = HTTPClient(cookie_store, verify=config.verify)

    app.register_blueprint(api_bp)

    return app
