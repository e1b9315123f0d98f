"""S3-compatible object storage helpers for user media."""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterable

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ..config import get_settings
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)

POSTS_BUCKET = "posts"
STORIES_BUCKET = "stories"
AVATARS_BUCKET = "avatars"

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class StorageConfig:
    """Runtime configuration extracted from settings and secrets."""

    key: str
    secret: str
    region: str
    endpoint: str | None
    public_url: str


@dataclass(frozen=True)
class StorageUploadResult:
    """Metadata returned after uploading an object."""

    url: str
    key: str
    bucket: str
    content_type: str
    size: int


class StorageConfigurationError(RuntimeError):
    """Raised when object storage settings are missing or invalid."""


class StorageUploadError(RuntimeError):
    """Raised when an upload to object storage fails."""


@lru_cache(maxsize=1)
def load_storage_config() -> StorageConfig:
    """Read and validate object storage configuration."""

    settings = get_settings()
    try:
        key = require_secret("STORAGE_ACCESS_KEY")
        secret = require_secret("STORAGE_SECRET_KEY")
    except MissingSecretError as exc:
        raise StorageConfigurationError(str(exc)) from exc

    endpoint = (settings.storage_endpoint or "").strip() or None
    public_url = (settings.storage_public_url or "").strip() or endpoint
    if public_url is None or is_placeholder(public_url):
        raise StorageConfigurationError("STORAGE_PUBLIC_URL or STORAGE_ENDPOINT must be configured")

    return StorageConfig(
        key=key,
        secret=secret,
        region=settings.storage_region,
        endpoint=endpoint,
        public_url=public_url.rstrip("/"),
    )


@lru_cache(maxsize=1)
def get_storage_client() -> BaseClient:
    """Create a singleton boto3 S3 client."""

    config = load_storage_config()
    session = Session()
    return session.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
    )


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-._")
        if cleaned:
            sanitized.append(cleaned)
    return sanitized


def _object_key(filename: str | None, folder: str, content_type: str) -> str:
    """Generate a random object key inside ``folder``."""

    extension = Path(filename or "").suffix.lower()
    if not extension or not re.fullmatch(r"\.[A-Za-z0-9]{1,10}", extension):
        extension = _EXTENSIONS.get(content_type, "")

    safe_folder = "/".join(_sanitize_segments(folder.replace("\\", "/").split("/")))
    unique_name = uuid.uuid4().hex
    return f"{safe_folder}/{unique_name}{extension}" if safe_folder else f"{unique_name}{extension}"


def build_public_url(bucket: str, key: str) -> str:
    config = load_storage_config()
    return f"{config.public_url}/{bucket}/{key.lstrip('/')}"


def validate_image(content_type: str | None, size: int, *, max_bytes: int) -> str:
    """Return the normalised content type or raise a 400 for unusable images."""

    normalized = (content_type or "").split(";")[0].strip().lower()
    if not normalized.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please select an image file")
    if size <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty")
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Image size should be less than {limit_mb}MB",
        )
    return normalized


def _measure(file_obj: BinaryIO) -> int:
    file_obj.seek(0, 2)
    size = file_obj.tell()
    file_obj.seek(0)
    return size


def _put_object(file_obj: BinaryIO, *, bucket: str, key: str, content_type: str) -> None:
    client = get_storage_client()
    try:
        file_obj.seek(0)
        client.upload_fileobj(
            file_obj,
            bucket,
            key,
            ExtraArgs={"ACL": "public-read", "ContentType": content_type},
        )
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
        logger.exception("Upload to object storage failed: %s", exc)
        raise StorageUploadError("Upload to object storage failed") from exc


async def upload_file_to_storage(
    file: UploadFile,
    *,
    bucket: str,
    folder: str,
    max_bytes: int,
) -> StorageUploadResult:
    """Validate an ``UploadFile`` as an image and store it under ``bucket/folder``."""

    file_obj = getattr(file, "file", None)
    if file_obj is None:
        raise StorageUploadError("UploadFile is missing an underlying file buffer.")
    size = _measure(file_obj)
    content_type = validate_image(file.content_type, size, max_bytes=max_bytes)
    key = _object_key(file.filename, folder, content_type)

    await run_in_threadpool(_put_object, file_obj, bucket=bucket, key=key, content_type=content_type)
    return StorageUploadResult(
        url=build_public_url(bucket, key),
        key=key,
        bucket=bucket,
        content_type=content_type,
        size=size,
    )


async def upload_bytes_to_storage(
    data: bytes,
    *,
    content_type: str,
    bucket: str,
    folder: str,
    max_bytes: int,
) -> StorageUploadResult:
    """Store raw image bytes, e.g. decoded from a data URL."""

    normalized = validate_image(content_type, len(data), max_bytes=max_bytes)
    key = _object_key(None, folder, normalized)
    await run_in_threadpool(_put_object, BytesIO(data), bucket=bucket, key=key, content_type=normalized)
    return StorageUploadResult(
        url=build_public_url(bucket, key),
        key=key,
        bucket=bucket,
        content_type=normalized,
        size=len(data),
    )


def storage_error_to_http(exc: Exception) -> HTTPException:
    """Translate infrastructure failures into API errors."""

    if isinstance(exc, StorageConfigurationError):
        logger.error("Object storage is not configured: %s", exc)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Media storage is not configured")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to upload media")


__all__ = [
    "AVATARS_BUCKET",
    "POSTS_BUCKET",
    "STORIES_BUCKET",
    "StorageConfig",
    "StorageConfigurationError",
    "StorageUploadError",
    "StorageUploadResult",
    "build_public_url",
    "get_storage_client",
    "load_storage_config",
    "storage_error_to_http",
    "upload_bytes_to_storage",
    "upload_file_to_storage",
    "validate_image",
]
