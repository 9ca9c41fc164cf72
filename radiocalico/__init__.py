import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask

from .config import Config
from .services.rating_service import RatingAggregator
from .stores import build_store

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.health import health_bp
from .blueprints.songs import songs_bp


def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "radiocalico.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Stream to stdout as well (useful on dev/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    # app.logger is the "radiocalico" logger, so module loggers
    # (radiocalico.stores.*, radiocalico.services.*) propagate into these handlers
    for handler in list(app.logger.handlers):
        app.logger.removeHandler(handler)
        handler.close()
    app.logger.addHandler(file_handler)
    app.logger.addHandler(stream_handler)

    app.logger.info("Logging initialized.")


def create_app(config_object=None, store=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.config.from_pyfile("config.py", silent=True)

    # Logging must come before the store so backend errors at startup are captured
    _init_logging(app)

    # Exactly one rating store per process, chosen by DATABASE_TYPE
    if store is None:
        store = build_store(app.config)
        store.create_schema()
    app.extensions["rating_store"] = store
    app.extensions["rating_aggregator"] = RatingAggregator(store)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(songs_bp, url_prefix="/api/songs")

    return app
