"""
Image Storage
=============

Stores uploaded campaign images and returns the URL they are served from.

Backends:
- local: files under UPLOAD_DIR, served by the app at /uploads
- s3: objects under campaigns/ in AWS_S3_BUCKET (boto3)
"""

import logging
import os
import secrets
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from poap_gateway.config import settings

logger = logging.getLogger(__name__)

# Stored files are named by their declared type, never by the uploaded filename
MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
DEFAULT_EXTENSION = ".png"


def _random_name(content_type: Optional[str]) -> str:
    return secrets.token_hex(8) + MIME_EXTENSIONS.get(content_type, DEFAULT_EXTENSION)


class StorageError(Exception):
    """Raised when an image cannot be persisted."""


class LocalStorage:
    """Writes images to a local directory."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or settings.UPLOAD_DIR
        os.makedirs(self.base_dir, exist_ok=True)

    def save(self, data: bytes, original_name: Optional[str], content_type: Optional[str] = None) -> str:
        name = _random_name(content_type)
        path = os.path.join(self.base_dir, name)
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Failed to write image: {e}") from e

        logger.info(f"💾 Stored image locally: {name} ({len(data)} bytes, uploaded as {original_name!r})")
        return f"/uploads/{name}"


class S3Storage:
    """Uploads images to S3 and returns their public URL."""

    def __init__(self, bucket: Optional[str] = None, region: Optional[str] = None, client=None):
        self.bucket = bucket or settings.AWS_S3_BUCKET
        self.region = region or settings.AWS_S3_REGION
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=self.region,
            config=Config(signature_version="s3v4"),
        )

    def save(self, data: bytes, original_name: Optional[str], content_type: Optional[str] = None) -> str:
        key = f"campaigns/{_random_name(content_type)}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 upload failed: {e}") from e

        logger.info(f"☁️  Stored image in S3: s3://{self.bucket}/{key} (uploaded as {original_name!r})")
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


_storage = None


def get_storage():
    """Return the configured storage backend (created once per process)."""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "s3":
            _storage = S3Storage()
        else:
            _storage = LocalStorage()
    return _storage


def set_storage(storage) -> None:
    """Replace the storage backend (tests)."""
    global _storage
    _storage = storage
