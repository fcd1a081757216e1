"""Media ingest: validate uploaded photos and push them to object storage."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
from uuid import uuid4

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import MediaError, PayloadTooLarge, UnsupportedMediaType, UploadFailed

logger = logging.getLogger(__name__)


MEGABYTE = 1024 * 1024
DEFAULT_MAX_BYTES = 25 * MEGABYTE
DEFAULT_MAX_DIMENSION = 1200
KEY_PREFIX = "guestbook"

# mimetype -> (Pillow format, file extension)
IMAGE_FORMATS = {
    "image/jpeg": ("JPEG", ".jpg"),
    "image/png": ("PNG", ".png"),
    "image/gif": ("GIF", ".gif"),
    "image/webp": ("WEBP", ".webp"),
}


@dataclass(frozen=True)
class Upload:
    filename: str
    mimetype: str
    data: bytes


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one file: either a reference URL or an error."""

    filename: str
    url: Optional[str] = None
    error: Optional[MediaError] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


class LocalObjectStore:
    """Stores objects below a directory served by the app under ``base_url``."""

    def __init__(self, root, base_url: str = "/uploads") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str) -> str:
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise UploadFailed(f"Could not write {key}: {exc}") from exc
        return f"{self.base_url}/{key}"


class S3ObjectStore:
    """Stores objects in an S3-compatible bucket through a boto3 client."""

    def __init__(self, client, bucket: str, public_base: str = "") -> None:
        self.client = client
        self.bucket = bucket
        self.public_base = public_base.rstrip("/")

    def url_for(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadFailed(f"Bucket rejected {key}: {exc}") from exc
        return self.url_for(key)


def build_object_store(config):
    """Pick the object store described by the application config."""
    bucket = config.get("MEDIA_BUCKET")
    if bucket:
        import boto3

        client = boto3.client(
            "s3",
            endpoint_url=config.get("MEDIA_ENDPOINT") or None,
            region_name=config.get("MEDIA_REGION") or None,
            aws_access_key_id=config.get("MEDIA_ACCESS_KEY_ID") or None,
            aws_secret_access_key=config.get("MEDIA_SECRET_ACCESS_KEY") or None,
        )
        return S3ObjectStore(client, bucket, config.get("MEDIA_PUBLIC_BASE", ""))
    base_url = config.get("MEDIA_BASE_URL") or "/uploads"
    return LocalObjectStore(config["UPLOADS_FOLDER_PATH"], base_url)


class MediaIngest:
    def __init__(
        self,
        object_store,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
    ) -> None:
        self.object_store = object_store
        self.max_bytes = max_bytes
        self.max_dimension = max_dimension

    def ingest(self, data: bytes, mimetype: str) -> str:
        """Validate, shrink and store one image, returning its reference URL."""
        if len(data) > self.max_bytes:
            raise PayloadTooLarge(
                f"File is {len(data)} bytes, the limit is {self.max_bytes}"
            )
        mimetype = (mimetype or "").split(";")[0].strip().lower()
        if mimetype not in IMAGE_FORMATS:
            raise UnsupportedMediaType(f"Unsupported image type: {mimetype or 'unknown'}")

        fmt, ext = IMAGE_FORMATS[mimetype]
        payload = self._optimise(data, fmt)
        key = f"{KEY_PREFIX}/{uuid4().hex}{ext}"
        return self.object_store.put(key, payload, mimetype)

    def ingest_many(self, uploads: Iterable[Upload]) -> List[IngestResult]:
        results: List[IngestResult] = []
        for upload in uploads:
            logger.info("Uploading %s (%d bytes)", upload.filename, len(upload.data))
            try:
                url = self.ingest(upload.data, upload.mimetype)
            except MediaError as exc:
                logger.warning("Photo upload failed for %s: %s", upload.filename, exc)
                results.append(IngestResult(upload.filename, error=exc))
                continue
            logger.info("Upload success: %s", url)
            results.append(IngestResult(upload.filename, url=url))
        return results

    def _optimise(self, data: bytes, fmt: str) -> bytes:
        bounds = (self.max_dimension, self.max_dimension)
        try:
            with Image.open(io.BytesIO(data)) as img:
                if getattr(img, "is_animated", False):
                    return data
                processed = ImageOps.exif_transpose(img)
                processed.thumbnail(bounds, Image.LANCZOS)
                if fmt == "JPEG" and processed.mode not in ("RGB", "L"):
                    processed = processed.convert("RGB")

                buffer = io.BytesIO()
                options = {"optimize": True}
                if fmt in ("JPEG", "WEBP"):
                    options["quality"] = 85
                processed.save(buffer, format=fmt, **options)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
            raise UnsupportedMediaType("File is not a readable image") from None
        return buffer.getvalue()
