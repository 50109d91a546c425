"""File validation — size limits and magic-byte type checks.

Uses the `filetype` library for magic-byte detection (don't trust the
browser-supplied content type) on image uploads for email templates and
the media library. Job uploads accept any type but are size-capped.
"""
import logging

import filetype

log = logging.getLogger("studio.file_validation")

# Image types we accept for email templates / media library
ALLOWED_IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def validate_upload(content: bytes, max_bytes: int) -> dict:
    """Validate a job upload's size.

    Returns:
        {
            "valid": bool,
            "size": int,
            "detected_mime": str | None,  # From magic bytes, when recognizable
            "reason": str | None,         # Why invalid
        }
    """
    result = {"valid": False, "size": len(content), "detected_mime": None, "reason": None}

    if len(content) == 0:
        result["reason"] = "Empty file"
        return result
    if len(content) > max_bytes:
        result["reason"] = f"File too large ({len(content)} bytes, max {max_bytes})"
        return result

    kind = filetype.guess(content)
    if kind:
        result["detected_mime"] = kind.mime
    result["valid"] = True
    return result


def validate_image(content: bytes, claimed_mime: str | None, max_bytes: int) -> dict:
    """Validate an image upload: size, then magic bytes against ALLOWED_IMAGE_TYPES.

    The detected MIME type wins over the claimed one; a mismatch between a
    claimed image type and non-image bytes is rejected.
    """
    result = validate_upload(content, max_bytes)
    if not result["valid"]:
        return result

    mime = result["detected_mime"]
    if mime not in ALLOWED_IMAGE_TYPES:
        result["valid"] = False
        if claimed_mime and claimed_mime.startswith("image/"):
            result["reason"] = f"File claims to be {claimed_mime} but detected as {mime or 'unknown'}"
        else:
            result["reason"] = "Only image files are allowed"
        return result

    if claimed_mime and claimed_mime != mime:
        log.debug(f"Claimed type {claimed_mime} differs from detected {mime}")
    return result
