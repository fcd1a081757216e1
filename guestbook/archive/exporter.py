"""Offline archival export of the whole guestbook.

A run writes, below ``output_dir``::

    guestbook-data.json                   raw export of every entry
    photos/entry-<id>-photo-<n>.<ext>     downloaded photos
    time-capsule-*.html                   self-contained snapshot variants
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from ..errors import ExportError
from ..models import GuestbookEntry
from ..services.entries import EntryStore
from .photos import EmbeddedImage, MissingPhoto
from .render import render_document

logger = logging.getLogger(__name__)

RAW_EXPORT_NAME = "guestbook-data.json"
PHOTOS_DIR_NAME = "photos"


@dataclass
class ArchivedEntry:
    id: int
    name: str
    note: str
    approved: bool
    created_at: datetime
    photo_urls: List[str] = field(default_factory=list)
    embedded: List[EmbeddedImage] = field(default_factory=list)

    @classmethod
    def from_model(cls, entry: GuestbookEntry) -> "ArchivedEntry":
        created_at = entry.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=entry.id,
            name=entry.name,
            note=entry.note,
            approved=bool(entry.approved),
            created_at=created_at,
            photo_urls=entry.photo_urls,
        )

    @classmethod
    def from_raw(cls, row: Dict[str, Any]) -> "ArchivedEntry":
        created_at = datetime.fromisoformat(row["created_at"].replace("Z", "+00:00"))
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=int(row["id"]),
            name=row["name"],
            note=row["note"],
            approved=bool(row["approved"]),
            created_at=created_at,
            photo_urls=list(row.get("photo_urls") or []),
        )

    def to_raw(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "note": self.note,
            "approved": self.approved,
            "created_at": self.created_at.isoformat(),
            "photo_urls": list(self.photo_urls),
        }


@dataclass(frozen=True)
class Variant:
    filename: str
    title: str
    include_test_entries: bool
    approved_only: bool

    def select(
        self, entries: Sequence[ArchivedEntry], excluded_ids: FrozenSet[int]
    ) -> List[ArchivedEntry]:
        selected = list(entries)
        if not self.include_test_entries:
            selected = [e for e in selected if e.id not in excluded_ids]
        if self.approved_only:
            selected = [e for e in selected if e.approved]
        return selected


VARIANTS = (
    Variant(
        "time-capsule-full-with-tests.html",
        "Wedding Guestbook: Complete Archive (incl. test posts)",
        include_test_entries=True,
        approved_only=False,
    ),
    Variant(
        "time-capsule-public-with-tests.html",
        "Wedding Guestbook: Public (incl. test posts)",
        include_test_entries=True,
        approved_only=True,
    ),
    Variant(
        "time-capsule-full.html",
        "Wedding Guestbook: Complete Archive",
        include_test_entries=False,
        approved_only=False,
    ),
    Variant(
        "time-capsule-public.html",
        "Wedding Guestbook",
        include_test_entries=False,
        approved_only=True,
    ),
)


@dataclass(frozen=True)
class DocumentSummary:
    filename: str
    entry_count: int
    photo_count: int
    size_bytes: int

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024


@dataclass
class ExportSummary:
    output_dir: Path
    entry_count: int
    photo_count: int
    missing: List[MissingPhoto]
    documents: List[DocumentSummary]

    def lines(self) -> List[str]:
        width = 42
        lines = [
            f"  {doc.filename:<{width}} {doc.entry_count} entries ({doc.size_mb:.2f} MB)"
            for doc in self.documents
        ]
        lines.append(f"  {RAW_EXPORT_NAME:<{width}} raw database export ({self.entry_count} entries)")
        lines.append(f"  {PHOTOS_DIR_NAME + '/':<{width}} {self.photo_count} image files")
        if self.missing:
            lines.append(f"  {len(self.missing)} photo(s) could not be archived")
        return lines


def load_entries_from_store(store: EntryStore) -> List[ArchivedEntry]:
    return [ArchivedEntry.from_model(entry) for entry in store.list_chronological()]


def load_entries_from_backup(raw_path: Path) -> List[ArchivedEntry]:
    """Load entries from a raw export written by an earlier run."""
    try:
        rows = json.loads(Path(raw_path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ExportError(f"No raw export found at {raw_path}") from None
    except (OSError, ValueError) as exc:
        raise ExportError(f"Could not read raw export {raw_path}: {exc}") from exc

    if not isinstance(rows, list):
        raise ExportError(f"Raw export {raw_path} is not a list of entries")

    entries = []
    for position, row in enumerate(rows):
        try:
            entries.append(ArchivedEntry.from_raw(row))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ExportError(
                f"Malformed entry #{position} in {raw_path}: {exc!r}"
            ) from exc
    entries.sort(key=lambda e: (e.created_at, e.id))
    return entries


def write_raw_export(entries: Iterable[ArchivedEntry], raw_path: Path) -> None:
    payload = [entry.to_raw() for entry in entries]
    Path(raw_path).write_text(
        json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
    )


class ArchiveExporter:
    def __init__(
        self,
        output_dir: Path,
        resolver,
        *,
        excluded_ids: Iterable[int] = (),
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.photos_dir = self.output_dir / PHOTOS_DIR_NAME
        self.raw_path = self.output_dir / RAW_EXPORT_NAME
        self.resolver = resolver
        self.excluded_ids = frozenset(excluded_ids)
        self.tz = tz

    def prepare(self) -> None:
        try:
            self.photos_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(f"Cannot create {self.photos_dir}: {exc}") from exc

    def variants(self) -> List[Variant]:
        if self.excluded_ids:
            return list(VARIANTS)
        # Without known test entries the "-with-tests" documents would be duplicates.
        return [v for v in VARIANTS if not v.include_test_entries]

    def embed_photos(self, entries: Sequence[ArchivedEntry]) -> List[MissingPhoto]:
        missing: List[MissingPhoto] = []
        attempted = 0
        for entry in entries:
            entry.embedded = []
            for index, url in enumerate(entry.photo_urls, start=1):
                attempted += 1
                logger.info("Resolving photo %d (entry #%d)", attempted, entry.id)
                result = self.resolver.resolve(entry.id, index, url)
                if isinstance(result, MissingPhoto):
                    missing.append(result)
                    continue
                entry.embedded.append(result)
        return missing

    def run(
        self,
        entries: Sequence[ArchivedEntry],
        *,
        export_date: Optional[date] = None,
        write_raw: bool = True,
    ) -> ExportSummary:
        """Archive ``entries``, which must already be in chronological order."""
        self.prepare()
        export_date = export_date or datetime.now(self.tz).date()
        logger.info("Archiving %d entries into %s", len(entries), self.output_dir)

        unknown = self.excluded_ids.difference(e.id for e in entries)
        if unknown:
            logger.warning("Excluded ids not present in the guestbook: %s", sorted(unknown))

        if write_raw:
            try:
                write_raw_export(entries, self.raw_path)
            except OSError as exc:
                raise ExportError(f"Cannot write {self.raw_path}: {exc}") from exc
            logger.info("Raw data saved to %s", self.raw_path)

        missing = self.embed_photos(entries)
        photo_count = sum(len(entry.embedded) for entry in entries)

        documents: List[DocumentSummary] = []
        for variant in self.variants():
            selected = variant.select(entries, self.excluded_ids)
            html = render_document(selected, variant.title, export_date, self.tz)
            out_path = self.output_dir / variant.filename
            try:
                out_path.write_text(html, encoding="utf-8")
            except OSError as exc:
                logger.error("Could not write %s: %s", out_path, exc)
                continue
            documents.append(
                DocumentSummary(
                    filename=variant.filename,
                    entry_count=len(selected),
                    photo_count=sum(len(e.embedded) for e in selected),
                    size_bytes=out_path.stat().st_size,
                )
            )

        summary = ExportSummary(
            output_dir=self.output_dir,
            entry_count=len(entries),
            photo_count=photo_count,
            missing=missing,
            documents=documents,
        )
        for line in summary.lines():
            logger.info(line)
        return summary
