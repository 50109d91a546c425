"""S3-compatible object storage (Wasabi) — upload, presign, delete.

Path-style addressing is forced; Wasabi redirects virtual-host requests
for some regions.

Usage:
    from app.utils.storage import generate_file_key, upload_bytes
    key = generate_file_key(f"jobs/{job_id}", "logo final.png")
    stored = upload_bytes(key, data, "image/png")   # {"key": ..., "url": ...}
"""
import base64
import binascii
import logging
import re
import secrets
import string
import time
from functools import lru_cache

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings

log = logging.getLogger("studio.storage")

DOWNLOAD_URL_TTL = 3600  # seconds
UPLOAD_URL_TTL = 900  # seconds

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_BASE36 = string.digits + string.ascii_lowercase


class StorageError(Exception):
    """Raised when the object store rejects or fails a request."""


@lru_cache
def _client():
    return boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key_id or None,
        aws_secret_access_key=settings.s3_secret_access_key or None,
        config=BotoConfig(s3={"addressing_style": "path"}, signature_version="s3v4"),
    )


# ── Keys & URLs ─────────────────────────────────────────────────────


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [a-zA-Z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", filename)


def generate_file_key(prefix: str, filename: str) -> str:
    """Unique object key: {prefix}/{epoch_ms}-{random base36}-{sanitized name}."""
    timestamp = int(time.time() * 1000)
    token = "".join(secrets.choice(_BASE36) for _ in range(11))
    return f"{prefix}/{timestamp}-{token}-{sanitize_filename(filename)}"


def public_url(key: str) -> str:
    if settings.s3_public_url:
        return f"{settings.s3_public_url.rstrip('/')}/{key}"
    return f"{settings.s3_endpoint.rstrip('/')}/{settings.s3_bucket}/{key}"


def decode_base64_payload(data: str) -> bytes:
    """Decode raw base64 or a data URL (data:<mime>;base64,<payload>)."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 file data: {e}") from e


# ── Operations ──────────────────────────────────────────────────────


def upload_bytes(key: str, data: bytes, content_type: str, public: bool = False) -> dict:
    """PUT an object. Returns {"key", "url"}."""
    extra = {"ACL": "public-read"} if public else {}
    try:
        _client().put_object(
            Bucket=settings.s3_bucket, Key=key, Body=data, ContentType=content_type, **extra
        )
    except (BotoCoreError, ClientError) as e:
        log.error(f"Upload failed for {key}: {e}")
        raise StorageError(f"Upload failed: {e}") from e
    log.info(f"Stored {key} ({len(data)} bytes)")
    return {"key": key, "url": public_url(key)}


def presigned_download_url(key: str, expires_in: int = DOWNLOAD_URL_TTL) -> str:
    try:
        return _client().generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.s3_bucket, "Key": key},
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Could not presign download: {e}") from e


def presigned_upload_url(key: str, content_type: str, expires_in: int = UPLOAD_URL_TTL) -> str:
    try:
        return _client().generate_presigned_url(
            "put_object",
            Params={"Bucket": settings.s3_bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Could not presign upload: {e}") from e


def delete_object(key: str) -> None:
    try:
        _client().delete_object(Bucket=settings.s3_bucket, Key=key)
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Delete failed for {key}: {e}") from e
    log.info(f"Deleted {key}")
