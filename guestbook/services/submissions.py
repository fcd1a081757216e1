"""Submission service: validate a visitor's message and store it."""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from ..errors import ValidationError
from ..models import MAX_PHOTOS, NAME_MAX_LENGTH, GuestbookEntry
from .entries import EntryStore
from .media import MediaIngest, Upload

logger = logging.getLogger(__name__)

PUBLIC_THANKS = "Thank you for signing the guestbook!"
PRIVATE_THANKS = "Thank you! Your private message has been sent to the couple."


def validate_submission(name: Optional[str], note: Optional[str]) -> Tuple[str, str]:
    name = (name or "").strip()
    note = (note or "").strip()
    if not name or not note:
        raise ValidationError("Name and note are required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be {NAME_MAX_LENGTH} characters or less")
    return name, note


def submit(
    store: EntryStore,
    ingest: Optional[MediaIngest],
    name: Optional[str],
    note: Optional[str],
    files: Sequence[Upload] = (),
    is_private: bool = False,
) -> GuestbookEntry:
    name, note = validate_submission(name, note)

    photos = []
    files = list(files)[:MAX_PHOTOS]
    if files:
        logger.info("Processing %d file(s) for upload", len(files))
        if ingest is None:
            logger.error("Cannot upload photos, no media storage is configured")
        else:
            results = ingest.ingest_many(files)
            photos = [result.url for result in results if result.ok]
            dropped = len(results) - len(photos)
            if dropped:
                logger.warning("Dropped %d of %d photo(s) from entry by %r", dropped, len(results), name)

    # Private messages are stored unapproved and only moderators see them.
    return store.insert(name, note, photos, approved=not is_private)


def thank_you_message(is_private: bool) -> str:
    return PRIVATE_THANKS if is_private else PUBLIC_THANKS
