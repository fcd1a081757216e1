"""Entry store: the single source of truth for guestbook entries."""
from __future__ import annotations

import logging
from typing import Iterable, List

import sqlalchemy as sa
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFound, StoreFailure, ValidationError
from ..extensions import db
from ..models import MAX_PHOTOS, GuestbookEntry

logger = logging.getLogger(__name__)


class EntryStore:
    """Single-row operations over ``guestbook_entries``.

    The session is passed in so the store can run against any engine,
    including the throwaway SQLite databases used by the tests.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _fail(self, action: str, exc: SQLAlchemyError) -> StoreFailure:
        self.session.rollback()
        logger.error("Entry store failed to %s: %s", action, exc)
        return StoreFailure(f"Failed to {action}")

    def _newest_first(self) -> sa.Select:
        return sa.select(GuestbookEntry).order_by(
            GuestbookEntry.created_at.desc(), GuestbookEntry.id.desc()
        )

    def insert(
        self, name: str, note: str, photos: Iterable[str], approved: bool
    ) -> GuestbookEntry:
        photos = list(photos)
        if len(photos) > MAX_PHOTOS:
            raise ValidationError(f"An entry can hold at most {MAX_PHOTOS} photos")

        entry = GuestbookEntry(name=name, note=note, photos=photos, approved=approved)
        try:
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("submit entry", exc) from exc
        return entry

    def get(self, entry_id: int) -> GuestbookEntry:
        try:
            entry = self.session.get(GuestbookEntry, entry_id)
        except SQLAlchemyError as exc:
            raise self._fail("fetch entry", exc) from exc
        if entry is None:
            raise NotFound()
        return entry

    def list_approved(self) -> List[GuestbookEntry]:
        query = self._newest_first().where(GuestbookEntry.approved.is_(True))
        try:
            return list(self.session.scalars(query))
        except SQLAlchemyError as exc:
            raise self._fail("fetch entries", exc) from exc

    def list_all(self) -> List[GuestbookEntry]:
        try:
            return list(self.session.scalars(self._newest_first()))
        except SQLAlchemyError as exc:
            raise self._fail("fetch entries", exc) from exc

    def list_chronological(self) -> List[GuestbookEntry]:
        """Every entry, oldest first, the order archives are told in."""
        query = sa.select(GuestbookEntry).order_by(
            GuestbookEntry.created_at.asc(), GuestbookEntry.id.asc()
        )
        try:
            return list(self.session.scalars(query))
        except SQLAlchemyError as exc:
            raise self._fail("fetch entries", exc) from exc

    def set_approval(self, entry_id: int, approved: bool) -> GuestbookEntry:
        entry = self.get(entry_id)
        try:
            entry.approved = approved
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update entry", exc) from exc
        return entry

    def delete(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        try:
            self.session.delete(entry)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete entry", exc) from exc


def setup_database(app) -> None:
    with app.app_context():
        db.create_all()

        try:
            db.session.execute(
                text(
                    "CREATE INDEX IF NOT EXISTS idx_guestbook_approved "
                    "ON guestbook_entries (approved, created_at DESC)"
                )
            )
            db.session.commit()
        except SQLAlchemyError as exc:  # pragma: no cover
            app.logger.warning("Index creation warning: %s", exc)
            db.session.rollback()
