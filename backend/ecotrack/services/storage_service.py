"""File storage collaborator for recycling-log images.

Images are written under ``<UPLOAD_DIR>/recycling`` and referenced by their
public path (``/uploads/recycling/<name>``), which is what gets stored on the
log row.
"""
import logging
import time
import uuid
from pathlib import Path

from ecotrack.config import settings
from ecotrack.exceptions import StorageFailure, ValidationFailed

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"
SUBDIR = "recycling"


def save_image(content: bytes, filename: str) -> str:
    """Store an uploaded image and return its reference."""
    ext = Path(filename or "").suffix.lower().lstrip(".")
    allowed = settings.allowed_image_extensions
    if ext not in allowed:
        raise ValidationFailed(
            field="image",
            rule="file_type",
            message="Only image files are allowed",
            received=filename,
            allowed=allowed,
        )
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationFailed(
            field="image",
            rule="max_size",
            message=f"Image exceeds the {settings.MAX_UPLOAD_SIZE} byte limit",
            received=len(content),
        )

    directory = Path(settings.UPLOAD_DIR) / SUBDIR
    name = f"recycling-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}.{ext}"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / name).write_bytes(content)
    except OSError as exc:
        raise StorageFailure("Could not store image", {"filename": filename}) from exc

    reference = f"{PUBLIC_PREFIX}{SUBDIR}/{name}"
    logger.debug("Stored image %s (%d bytes)", reference, len(content))
    return reference


def resolve_path(reference: str) -> Path:
    """Map a stored reference back to its location on disk."""
    relative = reference[len(PUBLIC_PREFIX):] if reference.startswith(PUBLIC_PREFIX) else reference.lstrip("/")
    return Path(settings.UPLOAD_DIR) / relative


def delete_image(reference: str) -> bool:
    """Best-effort delete. Returns False when nothing was removed."""
    path = resolve_path(reference)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Image %s already missing", reference)
        return False
    except OSError:
        logger.exception("Error deleting image file %s", path)
        return False
    logger.info("Deleted image file %s", path)
    return True
