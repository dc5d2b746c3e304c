# roomledger/__init__.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .errors import register_error_handlers
from .extensions import db, jwt, migrate

__version__ = "0.1.0"

BLUEPRINTS = (
    "auth",
    "properties",
    "rooms",
    "renters",
    "contracts",
    "payments",
    "documents",
    "expenses",
    "maintenance",
    "notifications",
    "reports",
    "analytics",
)


def _configure_logging(app: Flask) -> None:
    """JSON logs to stdout."""
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)
    root = logging.getLogger()
    root.setLevel(level)

    # avoid duplicate handlers in reloaders
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='{"ts":"%(asctime)s","level":"%(levelname)s","msg":"%(message)s","name":"%(name)s"}',
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _configure_cors(app: Flask) -> None:
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ALLOWED_ORIGINS", [])}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        expose_headers=["Content-Type", "Content-Disposition"],
        max_age=86400,
    )


def _configure_proxy(app: Flask) -> None:
    """Respect X-Forwarded-* from the reverse proxy."""
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore


def _load_config(app: Flask, config_object: Optional[str | Any]) -> None:
    if config_object is None:
        config_object = os.getenv("CONFIG_CLASS", "roomledger.config.Config")

    if isinstance(config_object, str):
        module, _, cls = config_object.rpartition(".")
        app.config.from_object(getattr(__import__(module, fromlist=[cls]), cls))
    else:
        app.config.from_object(config_object)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(app.instance_path, "roomledger.db")
    app.config.setdefault("API_PREFIX", "/api/v1")


def _register_blueprints(app: Flask) -> None:
    """Register all API blueprints under API_PREFIX."""
    prefix = app.config["API_PREFIX"]
    for name in BLUEPRINTS:
        mod = __import__(f"roomledger.routes.{name}", fromlist=["bp"])
        app.register_blueprint(mod.bp, url_prefix=prefix)
        app.logger.debug("Registered blueprint %s at %s", name, prefix)


# --- Application Factory ------------------------------------------------------
def create_app(config_object: Optional[str | Any] = None) -> Flask:
    """
    Standard Flask application factory.

    `config_object` may be:
      - a config object
      - dotted path to a config class (e.g., "roomledger.config.ProductionConfig")
      - None (then CONFIG_CLASS env or roomledger.config.Config)
    """
    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    _load_config(app, config_object)

    _configure_logging(app)
    _configure_proxy(app)
    _configure_cors(app)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # models must be imported before migrate/create_all see the metadata
    from . import models  # noqa: F401

    register_error_handlers(app)
    _register_blueprints(app)

    from .cli import register_cli

    register_cli(app)

    @app.get(app.config["API_PREFIX"] + "/health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "time": datetime.utcnow().isoformat() + "Z",
                "service": "roomledger",
                "version": __version__,
            }
        ), 200

    @app.get("/")
    def root():
        return jsonify({"service": "roomledger", "message": "See " + app.config["API_PREFIX"] + "/health"}), 200

    return app
