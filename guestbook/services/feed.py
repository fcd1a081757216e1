"""Public feed: what anonymous visitors are allowed to see."""
from __future__ import annotations

from typing import Any, Dict, List

from .entries import EntryStore


def public_feed(store: EntryStore) -> List[Dict[str, Any]]:
    return [entry.to_public_dict() for entry in store.list_approved()]


def admin_listing(store: EntryStore) -> List[Dict[str, Any]]:
    return [entry.to_admin_dict() for entry in store.list_all()]
