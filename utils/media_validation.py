"""Validation helpers for images supplied by the browser."""

import base64
import binascii

from exceptions.exceptions import ValidationError

ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/heic",
    "image/heif",
    "image/gif",
}


def normalize_image_mime_type(mime_type: str) -> str:
    """Return the bare, lower-cased MIME type, rejecting non-image types."""
    content_type = (mime_type or "").lower().split(";", 1)[0].strip()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(f"Unsupported image content type: {mime_type}")
    return content_type


def ensure_base64_payload(data: str) -> str:
    """Return `data` unchanged when it is valid base64, otherwise raise."""
    if not data:
        raise ValidationError("Image data is empty.")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image data must be base64-encoded.") from exc
    return data
