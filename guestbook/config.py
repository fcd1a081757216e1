"""Configuration helpers for the guestbook application."""
from __future__ import annotations

import os
from typing import Any, Dict, FrozenSet

from .utils import parse_bool


MEGABYTE = 1024 * 1024

DEFAULTS = {
    "SECRET_KEY": "dev-secret-change-me",
    "ADMIN_PASSWORD": "",
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "SQLALCHEMY_ENGINE_OPTIONS": {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    },
    "DATABASE_URL": "sqlite:///guestbook.db",
    "MAX_PHOTOS": 5,
    "MAX_PHOTO_BYTES": 25 * MEGABYTE,
    "MAX_PHOTO_DIMENSION": 1200,
    "ARCHIVE_DIR": "backup",
    "ARCHIVE_TIMEZONE": "UTC",
}


def _normalize_database_url(url: str) -> str:
    """Normalise DATABASE_URL for SQLAlchemy."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def parse_id_list(raw: str) -> FrozenSet[int]:
    """Parse a comma separated list of entry ids such as ``"1, 2,4"``."""
    ids = set()
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            ids.add(int(chunk))
        except ValueError:
            raise ValueError(f"Invalid entry id in id list: {chunk!r}") from None
    return frozenset(ids)


def _int_env(name: str) -> int:
    return int(os.environ.get(name, DEFAULTS[name]))


def load_config() -> Dict[str, Any]:
    """Collect runtime configuration from the environment."""
    secret_key = os.environ.get("SECRET_KEY", DEFAULTS["SECRET_KEY"])
    admin_password = os.environ.get("ADMIN_PASSWORD", DEFAULTS["ADMIN_PASSWORD"])
    raw_db_url = os.environ.get("DATABASE_URL", DEFAULTS["DATABASE_URL"])
    database_url = _normalize_database_url(raw_db_url)

    max_photos = _int_env("MAX_PHOTOS")
    max_photo_bytes = _int_env("MAX_PHOTO_BYTES")

    config = {
        "SECRET_KEY": secret_key,
        "ADMIN_PASSWORD": admin_password,
        "SQLALCHEMY_DATABASE_URI": database_url,
        "SQLALCHEMY_TRACK_MODIFICATIONS": DEFAULTS["SQLALCHEMY_TRACK_MODIFICATIONS"],
        "SQLALCHEMY_ENGINE_OPTIONS": DEFAULTS["SQLALCHEMY_ENGINE_OPTIONS"].copy(),
        "MAX_PHOTOS": max_photos,
        "MAX_PHOTO_BYTES": max_photo_bytes,
        "MAX_PHOTO_DIMENSION": _int_env("MAX_PHOTO_DIMENSION"),
        # Whole request ceiling; individual files are checked again on ingest.
        "MAX_CONTENT_LENGTH": max_photos * max_photo_bytes + MEGABYTE,
        "SITE_URL": os.environ.get("SITE_URL", ""),
        "MEDIA_DISABLED": parse_bool(os.environ.get("MEDIA_DISABLED")),
        "MEDIA_BASE_URL": os.environ.get("MEDIA_BASE_URL", ""),
        "MEDIA_BUCKET": os.environ.get("MEDIA_BUCKET", ""),
        "MEDIA_ENDPOINT": os.environ.get("MEDIA_ENDPOINT", ""),
        "MEDIA_REGION": os.environ.get("MEDIA_REGION", "auto"),
        "MEDIA_ACCESS_KEY_ID": os.environ.get("MEDIA_ACCESS_KEY_ID", ""),
        "MEDIA_SECRET_ACCESS_KEY": os.environ.get("MEDIA_SECRET_ACCESS_KEY", ""),
        "MEDIA_PUBLIC_BASE": os.environ.get("MEDIA_PUBLIC_BASE", ""),
        "ARCHIVE_DIR": os.environ.get("ARCHIVE_DIR", DEFAULTS["ARCHIVE_DIR"]),
        "ARCHIVE_EXCLUDED_IDS": parse_id_list(os.environ.get("ARCHIVE_EXCLUDED_IDS", "")),
        "ARCHIVE_TIMEZONE": os.environ.get("ARCHIVE_TIMEZONE", DEFAULTS["ARCHIVE_TIMEZONE"]),
    }
    return config
