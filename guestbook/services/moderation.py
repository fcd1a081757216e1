"""Moderation service: approve, hide and remove entries.

Callers are expected to have checked the admin credential already.
Removing an entry leaves its photos in object storage.
"""
from __future__ import annotations

import logging

from ..errors import ValidationError
from ..models import GuestbookEntry
from .entries import EntryStore

logger = logging.getLogger(__name__)


def approve(store: EntryStore, entry_id: int, approved: bool) -> GuestbookEntry:
    if not isinstance(approved, bool):
        raise ValidationError("approved must be a boolean")
    entry = store.set_approval(entry_id, approved)
    logger.info("Entry %s %s", entry_id, "approved" if approved else "hidden")
    return entry


def remove(store: EntryStore, entry_id: int) -> None:
    store.delete(entry_id)
    logger.info("Entry %s deleted", entry_id)
