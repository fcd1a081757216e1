"""Generic helpers."""
from __future__ import annotations

import hmac
from typing import Optional


TRUTHY = {"1", "true", "on", "yes", "y"}


def parse_bool(value: Optional[str]) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).lower() in TRUTHY


def password_matches(expected: Optional[str], supplied: Optional[str]) -> bool:
    """Constant-time comparison; an unset password never matches."""
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
