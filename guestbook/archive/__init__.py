"""Static, self-contained archives of the guestbook."""
from .exporter import (
    ArchiveExporter,
    ArchivedEntry,
    ExportSummary,
    load_entries_from_backup,
    load_entries_from_store,
)
from .photos import CachedPhotoResolver, EmbeddedImage, MissingPhoto, RemotePhotoResolver

__all__ = [
    "ArchiveExporter",
    "ArchivedEntry",
    "CachedPhotoResolver",
    "EmbeddedImage",
    "ExportSummary",
    "MissingPhoto",
    "RemotePhotoResolver",
    "load_entries_from_backup",
    "load_entries_from_store",
]
