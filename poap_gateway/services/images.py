"""
Campaign image validation and upload.
"""

import logging
from typing import Optional

from poap_gateway.config import settings
from poap_gateway.utils.storage import MIME_EXTENSIONS, get_storage

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = tuple(MIME_EXTENSIONS)


class ImageValidationError(ValueError):
    pass


def validate_image(content_type: Optional[str], size: int) -> None:
    """
    Raises:
        ImageValidationError: MIME type not allowed or file larger than MAX_IMAGE_BYTES
    """
    if content_type not in ALLOWED_MIME_TYPES:
        raise ImageValidationError(f"Image type not allowed: {content_type}")
    if size > settings.MAX_IMAGE_BYTES:
        max_mb = settings.MAX_IMAGE_BYTES // (1024 * 1024)
        raise ImageValidationError(f"Image exceeds the maximum size of {max_mb}MB")


def store_image(data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
    """Validate and persist an image; returns its public URL."""
    validate_image(content_type, len(data))
    url = get_storage().save(data, filename, content_type)
    logger.info(f"🖼️  Image uploaded: {url}")
    return url
