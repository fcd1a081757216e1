"""Turning photo reference URLs into embeddable image payloads.

Two resolvers share one interface, ``resolve(entry_id, index, url)``:
``RemotePhotoResolver`` downloads the photo and keeps a copy on disk,
``CachedPhotoResolver`` reads the copy a previous run left behind. Both
name files ``entry-<id>-photo-<n>.<ext>`` and derive the embedded media
type from the extension, so an online and an offline run embed the same
bytes under the same type.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)


EXTENSION_BY_MEDIA_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
MEDIA_TYPE_BY_EXTENSION = {ext: mime for mime, ext in EXTENSION_BY_MEDIA_TYPE.items()}
DEFAULT_EXTENSION = ".jpg"
# Probe order for cached files.
CANDIDATE_EXTENSIONS = (".jpg", ".png", ".gif", ".webp")


@dataclass(frozen=True)
class EmbeddedImage:
    media_type: str
    data: bytes
    filename: str

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


@dataclass(frozen=True)
class MissingPhoto:
    entry_id: int
    index: int
    url: str
    reason: str


Resolution = Union[EmbeddedImage, MissingPhoto]


def photo_basename(entry_id: int, index: int) -> str:
    return f"entry-{entry_id}-photo-{index}"


def extension_for(content_type: Optional[str]) -> str:
    media_type = (content_type or "").split(";")[0].strip().lower()
    return EXTENSION_BY_MEDIA_TYPE.get(media_type, DEFAULT_EXTENSION)


def media_type_for(extension: str) -> str:
    return MEDIA_TYPE_BY_EXTENSION.get(extension.lower(), "image/jpeg")


class RemotePhotoResolver:
    """Fetch photos over HTTP and save a copy into ``photos_dir``."""

    def __init__(
        self,
        photos_dir: Path,
        client: httpx.Client,
        *,
        site_url: str = "",
    ) -> None:
        self.photos_dir = Path(photos_dir)
        self.client = client
        self.site_url = site_url

    def _absolute(self, url: str) -> str:
        # Photos kept in the local uploads folder are stored as site-relative paths.
        if self.site_url and url.startswith("/"):
            return urljoin(self.site_url.rstrip("/") + "/", url.lstrip("/"))
        return url

    def resolve(self, entry_id: int, index: int, url: str) -> Resolution:
        try:
            response = self.client.get(self._absolute(url), follow_redirects=True)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Failed to download %s: %s", url, exc)
            return MissingPhoto(entry_id, index, url, str(exc))

        extension = extension_for(response.headers.get("content-type"))
        filename = photo_basename(entry_id, index) + extension
        try:
            (self.photos_dir / filename).write_bytes(response.content)
        except OSError as exc:
            logger.error("Could not save %s: %s", filename, exc)
        return EmbeddedImage(media_type_for(extension), response.content, filename)


class CachedPhotoResolver:
    """Read photos saved by an earlier :class:`RemotePhotoResolver` run."""

    def __init__(self, photos_dir: Path) -> None:
        self.photos_dir = Path(photos_dir)

    def find(self, entry_id: int, index: int) -> Optional[Path]:
        basename = photo_basename(entry_id, index)
        for extension in CANDIDATE_EXTENSIONS:
            candidate = self.photos_dir / (basename + extension)
            if candidate.is_file():
                return candidate
        return None

    def resolve(self, entry_id: int, index: int, url: str) -> Resolution:
        path = self.find(entry_id, index)
        if path is None:
            logger.error("No saved copy of photo %d for entry #%d (%s)", index, entry_id, url)
            return MissingPhoto(entry_id, index, url, "not found in backup")
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.error("Could not read %s: %s", path, exc)
            return MissingPhoto(entry_id, index, url, str(exc))
        return EmbeddedImage(media_type_for(path.suffix), data, path.name)
