"""Exception hierarchy shared by services, routes and the exporter."""
from __future__ import annotations


class GuestbookError(Exception):
    """Base class for every error raised by the guestbook."""

    status_code = 500
    public_message = "Internal server error"
    # Whether ``message`` is safe to hand back to the HTTP caller.
    expose_message = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def describe(self) -> str:
        return self.message if self.expose_message else self.public_message


class ValidationError(GuestbookError):
    """Bad or missing input."""

    status_code = 400
    public_message = "Invalid request"
    expose_message = True


class Unauthorized(GuestbookError):
    status_code = 401
    public_message = "Unauthorized"


class NotFound(GuestbookError):
    status_code = 404
    public_message = "Entry not found"


class StoreFailure(GuestbookError):
    """The database rejected or failed an operation.

    The message names the failed action only ("Failed to fetch entries");
    driver details go to the log.
    """

    status_code = 500
    public_message = "Internal server error"
    expose_message = True


class MediaError(GuestbookError):
    """A single uploaded file could not be ingested."""

    status_code = 400
    public_message = "Photo upload failed"


class UnsupportedMediaType(MediaError):
    status_code = 415
    public_message = "Unsupported image type"


class PayloadTooLarge(MediaError):
    status_code = 413
    public_message = "File too large"


class UploadFailed(MediaError):
    status_code = 502
    public_message = "Photo upload failed"


class ExportError(GuestbookError):
    """Unrecoverable archival export condition."""


__all__ = [
    "ExportError",
    "GuestbookError",
    "MediaError",
    "NotFound",
    "PayloadTooLarge",
    "StoreFailure",
    "Unauthorized",
    "UnsupportedMediaType",
    "UploadFailed",
    "ValidationError",
]
