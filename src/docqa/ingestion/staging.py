"""Raw-file staging — where uploaded bytes live while they are parsed.

Parsers such as ``PyPDFLoader`` want a path on disk.  A staging backend
turns an upload into such a path and frees everything it created once
ingestion finishes, whether it succeeded or not.

Backends
--------
* ``local`` — :class:`LocalDiskStaging`, a uniquely named file in an upload directory.
* ``s3``    — :class:`S3Staging`, an object in an S3-compatible bucket plus a
  local temporary copy for parsing.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError

from docqa.errors import InvalidConfiguration, StoreError

if TYPE_CHECKING:
    from docqa.config import Settings

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file held in memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_pdf(self) -> bool:
        return self.content_type == PDF_CONTENT_TYPE or self.filename.lower().endswith(".pdf")

    @property
    def suffix(self) -> str:
        return Path(self.filename).suffix.lower()


@dataclass(frozen=True)
class StagedFile:
    """Handle to a staged upload.

    Attributes
    ----------
    path:
        Local file the parser reads.
    key:
        Object key for remote backends, ``None`` for local staging.
    """

    path: Path
    key: str | None = None


def _unique_name(upload: UploadedFile) -> str:
    return f"upload-{int(time.time() * 1000)}-{uuid4().hex[:9]}{upload.suffix}"


class RawFileStaging(ABC):
    """Stage uploads for parsing and release them afterwards."""

    @abstractmethod
    def stage(self, upload: UploadedFile) -> StagedFile:
        """Make *upload* available as a local file."""
        ...

    @abstractmethod
    def release(self, handle: StagedFile) -> None:
        """Remove everything :meth:`stage` created.  Never raises."""
        ...


class LocalDiskStaging(RawFileStaging):
    """Stage uploads as files in *upload_dir*."""

    def __init__(self, upload_dir: str | Path = "./uploads") -> None:
        self.upload_dir = Path(upload_dir)

    def stage(self, upload: UploadedFile) -> StagedFile:
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path = self.upload_dir / _unique_name(upload)
            path.write_bytes(upload.data)
        except OSError as exc:
            raise StoreError(f"Failed to stage {upload.filename!r} on disk") from exc
        logger.info("Staged %s (%d bytes) at %s", upload.filename, upload.size, path)
        return StagedFile(path=path)

    def release(self, handle: StagedFile) -> None:
        try:
            handle.path.unlink(missing_ok=True)
            logger.info("Released staged file %s", handle.path)
        except OSError:
            logger.warning("Failed to delete staged file %s", handle.path, exc_info=True)


class S3Staging(RawFileStaging):
    """Stage uploads in an S3-compatible bucket.

    Parameters
    ----------
    bucket:
        Target bucket name.
    client:
        A boto3 S3 client.
    prefix:
        Key prefix for staged objects.
    """

    def __init__(self, bucket: str, client: Any, *, prefix: str = "uploads/") -> None:
        if not bucket:
            raise InvalidConfiguration("S3 bucket not configured")
        self.bucket = bucket
        self.prefix = prefix
        self._client = client

    def stage(self, upload: UploadedFile) -> StagedFile:
        key = f"{self.prefix}{_unique_name(upload)}"
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=upload.data,
                ContentType=upload.content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"Failed to upload {upload.filename!r} to storage") from exc
        logger.info("Uploaded %s to s3://%s/%s", upload.filename, self.bucket, key)

        fd, tmp_name = tempfile.mkstemp(suffix=upload.suffix)
        handle = StagedFile(path=Path(tmp_name), key=key)
        try:
            with os.fdopen(fd, "wb") as fh:
                self._client.download_fileobj(self.bucket, key, fh)
        except (BotoCoreError, ClientError, OSError) as exc:
            self.release(handle)
            raise StoreError(f"Failed to download {key!r} from storage") from exc
        return handle

    def release(self, handle: StagedFile) -> None:
        if handle.key:
            try:
                self._client.delete_object(Bucket=self.bucket, Key=handle.key)
                logger.info("Removed s3://%s/%s", self.bucket, handle.key)
            except (BotoCoreError, ClientError):
                logger.warning("Failed to delete staged object %s", handle.key, exc_info=True)
        try:
            handle.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to delete temporary file %s", handle.path, exc_info=True)


def build_staging(settings: Settings) -> RawFileStaging:
    """Select the staging backend for this deployment."""
    backend = (settings.staging_backend or "local").strip().lower()
    if backend == "local":
        return LocalDiskStaging(settings.upload_dir)
    if backend == "s3":
        import boto3

        if not settings.s3_access_key or not settings.s3_secret_key:
            raise InvalidConfiguration("S3 credentials not configured")
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint or None,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
        )
        return S3Staging(settings.s3_bucket, client)
    raise InvalidConfiguration(f"Unsupported staging_backend: {backend!r}")
