"""Application factory for the guestbook."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask

from .cli import register as register_cli
from .config import load_config
from .extensions import db
from .routes import register as register_routes
from .services.entries import setup_database
from .services.media import MediaIngest, build_object_store

BASE_DIR = Path(__file__).resolve().parent.parent


def create_app(config_override: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(
        __name__,
        static_folder=str(BASE_DIR / "static"),
        template_folder=str(BASE_DIR / "templates"),
    )
    app.config.update(load_config())
    if config_override:
        app.config.update(config_override)

    _configure_logging(app)
    _configure_upload_storage(app)
    _configure_media(app)

    db.init_app(app)
    setup_database(app)
    register_routes(app)
    register_cli(app)
    return app


def _configure_logging(app: Flask) -> None:
    # app.logger is the "guestbook" logger, parent of every service module logger.
    level = os.environ.get("LOG_LEVEL", app.config.get("LOG_LEVEL", ""))
    if level:
        app.logger.setLevel(level.upper())
    elif app.logger.level == logging.NOTSET:
        app.logger.setLevel(logging.INFO)


def _configure_upload_storage(app: Flask) -> None:
    """Ensure uploaded photos survive redeployments."""
    if app.config.get("UPLOADS_FOLDER_PATH"):
        target_root = Path(app.config["UPLOADS_FOLDER_PATH"])
    else:
        # Railway mounts persistent volumes to this environment variable. Allow an
        # explicit override for other platforms as well.
        base_path = (
            os.environ.get("UPLOADS_ROOT")
            or os.environ.get("RAILWAY_VOLUME_MOUNT_PATH")
            or ""
        )
        target_root = (
            Path(base_path).expanduser() if base_path else Path(app.instance_path) / "uploads"
        )

    target_root.mkdir(parents=True, exist_ok=True)
    app.config["UPLOADS_FOLDER_PATH"] = str(target_root)


def _configure_media(app: Flask) -> None:
    if app.config.get("MEDIA_DISABLED"):
        app.logger.warning("Photo storage disabled - photo uploads will be dropped")
        return
    store = build_object_store(app.config)
    app.extensions["guestbook_media"] = MediaIngest(
        store,
        max_bytes=app.config["MAX_PHOTO_BYTES"],
        max_dimension=app.config["MAX_PHOTO_DIMENSION"],
    )
    app.logger.info("Photo storage: %s", type(store).__name__)


__all__ = ["create_app", "db"]
