"""Database models for the guestbook."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from .extensions import db


NAME_MAX_LENGTH = 120
MAX_PHOTOS = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    # SQLite drops tzinfo on the way back; every stored timestamp is UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class GuestbookEntry(db.Model):
    __tablename__ = "guestbook_entries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False)
    note = db.Column(db.Text, nullable=False)
    photos = db.Column(db.JSON, nullable=False, default=list)
    approved = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def photo_urls(self) -> List[str]:
        return list(self.photos or [])

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "note": self.note,
            "photos": self.photo_urls,
            "created_at": isoformat(self.created_at),
        }

    def to_admin_dict(self) -> Dict[str, Any]:
        data = self.to_public_dict()
        data["approved"] = self.approved
        return data

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<GuestbookEntry id={self.id} name={self.name!r} approved={self.approved}>"
