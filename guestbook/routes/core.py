"""HTTP route declarations."""
from __future__ import annotations

from typing import List, Optional

from flask import current_app, jsonify, render_template, request, send_from_directory
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from ..errors import GuestbookError, StoreFailure, Unauthorized, ValidationError
from ..extensions import db
from ..models import MAX_PHOTOS
from ..services.entries import EntryStore
from ..services.feed import admin_listing, public_feed
from ..services.media import MediaIngest, Upload
from ..services.moderation import approve, remove
from ..services.submissions import submit, thank_you_message
from ..utils import parse_bool, password_matches

ADMIN_HEADER = "X-Admin-Password"


def register(app) -> None:
    app.add_url_rule("/", view_func=index)
    app.add_url_rule("/display", view_func=display)
    app.add_url_rule("/admin", view_func=admin)
    app.add_url_rule("/uploads/<path:key>", view_func=uploaded_photo)
    app.add_url_rule("/health", view_func=health)

    app.add_url_rule("/api/entries", view_func=create_entry, methods=["POST"])
    app.add_url_rule("/api/entries", view_func=list_entries, methods=["GET"])
    app.add_url_rule("/api/admin/entries", view_func=admin_list_entries, methods=["GET"])
    app.add_url_rule(
        "/api/admin/entries/<int:entry_id>",
        view_func=admin_update_entry,
        methods=["PATCH"],
    )
    app.add_url_rule(
        "/api/admin/entries/<int:entry_id>",
        view_func=admin_delete_entry,
        methods=["DELETE"],
    )

    app.register_error_handler(GuestbookError, guestbook_error)
    app.register_error_handler(RequestEntityTooLarge, payload_too_large)
    app.register_error_handler(404, not_found)
    app.register_error_handler(500, internal_error)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _store() -> EntryStore:
    return EntryStore(db.session)


def _media_ingest() -> Optional[MediaIngest]:
    return current_app.extensions.get("guestbook_media")


def _require_admin() -> None:
    expected = current_app.config.get("ADMIN_PASSWORD")
    if not password_matches(expected, request.headers.get(ADMIN_HEADER)):
        current_app.logger.warning("Rejected admin request from %s", request.remote_addr)
        raise Unauthorized()


def _uploads() -> List[Upload]:
    files = [s for s in request.files.getlist("photos") if s and s.filename]
    limit = current_app.config.get("MAX_PHOTOS", MAX_PHOTOS)
    if len(files) > limit:
        raise ValidationError(f"Too many photos. Maximum is {limit} per entry.")

    uploads: List[Upload] = []
    for storage in files:
        uploads.append(
            Upload(
                filename=storage.filename,
                mimetype=storage.mimetype or "",
                data=storage.read(),
            )
        )
    return uploads


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def index():
    return render_template("index.html", max_photos=current_app.config.get("MAX_PHOTOS", 5))


def display():
    return render_template("display.html")


def admin():
    return render_template("admin.html")


def uploaded_photo(key: str):
    return send_from_directory(current_app.config["UPLOADS_FOLDER_PATH"], key)


def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_entry():
    is_private = parse_bool(request.form.get("private"))
    entry = submit(
        _store(),
        _media_ingest(),
        request.form.get("name"),
        request.form.get("note"),
        _uploads(),
        is_private=is_private,
    )
    current_app.logger.info(
        "New %s entry #%s from %r with %d photo(s)",
        "private" if is_private else "public",
        entry.id,
        entry.name,
        len(entry.photo_urls),
    )
    return jsonify(
        success=True,
        message=thank_you_message(is_private),
        entry=entry.to_summary_dict(),
    )


def list_entries():
    return jsonify(public_feed(_store()))


# ---------------------------------------------------------------------------
# Admin API
# ---------------------------------------------------------------------------

def admin_list_entries():
    _require_admin()
    return jsonify(admin_listing(_store()))


def admin_update_entry(entry_id: int):
    _require_admin()
    payload = request.get_json(silent=True)
    approved = payload.get("approved") if isinstance(payload, dict) else None
    entry = approve(_store(), entry_id, approved)
    return jsonify(success=True, entry=entry.to_admin_dict())


def admin_delete_entry(entry_id: int):
    _require_admin()
    remove(_store(), entry_id)
    return jsonify(success=True, message="Entry deleted")


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

def guestbook_error(error: GuestbookError):
    if isinstance(error, StoreFailure):
        current_app.logger.error("Store failure on %s %s: %s", request.method, request.path, error)
    return jsonify(error=error.describe()), error.status_code


def payload_too_large(error: RequestEntityTooLarge):
    limit_mb = current_app.config.get("MAX_PHOTO_BYTES", 0) // (1024 * 1024)
    return jsonify(error=f"File too large. Maximum size is {limit_mb}MB."), 413


def not_found(error: HTTPException):
    if request.path.startswith("/api/"):
        return jsonify(error="Not found"), 404
    return render_template("404.html"), 404


def internal_error(error):
    db.session.rollback()
    current_app.logger.error("Unhandled error on %s %s: %s", request.method, request.path, error)
    return jsonify(error="Internal server error"), 500
