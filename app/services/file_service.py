"""
app/services/file_service.py

Purpose: File intake for uploaded artifacts

- Validates extension, MIME type and size before anything is written
- Stores uploads under date-partitioned, timestamp-qualified paths
- Records relative path, uppercase type and byte size
- Deletes stored files for compensating cleanup
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from utils import time_utils
from utils.constants import (
    MODEL_EXTENSIONS,
    DELIVERABLE_EXTENSIONS,
    PURCHASE_ORDER_EXTENSIONS,
    PURCHASE_ORDER_MIME_TYPES,
    UPLOADS_AREA,
    COMPLETED_AREA,
    PURCHASE_ORDER_AREA,
    UPLOAD_CHUNK_SIZE,
)
from utils.validation_utils import split_filename, sanitize_filename

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileRule:
    """Allow-list and size ceiling for one upload site."""
    label: str
    area: str
    allowed_extensions: Tuple[str, ...]
    max_size: int
    allowed_mime_types: Optional[Tuple[str, ...]] = None
    name_prefix: str = ""


@dataclass(frozen=True)
class StoredFile:
    relative_path: str
    file_type: str
    size: int


def model_file_rule() -> FileRule:
    return FileRule(
        label="3D model",
        area=UPLOADS_AREA,
        allowed_extensions=MODEL_EXTENSIONS,
        max_size=settings.MAX_MODEL_FILE_SIZE,
    )


def deliverable_file_rule() -> FileRule:
    return FileRule(
        label="completed",
        area=COMPLETED_AREA,
        allowed_extensions=DELIVERABLE_EXTENSIONS,
        max_size=settings.MAX_MODEL_FILE_SIZE,
        name_prefix="completed_",
    )


def purchase_order_rule() -> FileRule:
    return FileRule(
        label="purchase order",
        area=PURCHASE_ORDER_AREA,
        allowed_extensions=PURCHASE_ORDER_EXTENSIONS,
        max_size=settings.MAX_PO_FILE_SIZE,
        allowed_mime_types=PURCHASE_ORDER_MIME_TYPES,
    )


def _format_size(size: int) -> str:
    mb = size / (1024 * 1024)
    return f"{mb:g}MB"


def _storage_root() -> Path:
    return Path(settings.STORAGE_ROOT)


def _absolute(relative_path: str) -> Path:
    root = _storage_root().resolve()
    target = (root / relative_path.lstrip("/")).resolve()
    # Stored paths come from the database, never from the client, but keep them inside the root
    if root != target and root not in target.parents:
        raise ValueError(f"Path escapes storage root: {relative_path}")
    return target


def validate_upload(upload: Optional[UploadFile], rule: FileRule) -> str:
    """
    Checks an upload against a rule without touching the disk.

    Returns:
        Lowercased extension including the dot

    Raises:
        ValidationError: Missing file, disallowed type or too large
    """
    if upload is None or not upload.filename:
        raise ValidationError(f"No {rule.label} file was uploaded")

    _, extension = split_filename(upload.filename)
    if extension not in rule.allowed_extensions:
        raise ValidationError(
            f"Invalid file type. Allowed types: {', '.join(rule.allowed_extensions)}"
        )

    if rule.allowed_mime_types is not None and upload.content_type not in rule.allowed_mime_types:
        raise ValidationError(
            f"Invalid file type. Allowed types: {', '.join(rule.allowed_extensions)}"
        )

    if upload.size is not None and upload.size > rule.max_size:
        raise ValidationError(f"File exceeds {_format_size(rule.max_size)} limit")

    return extension


async def save_upload(upload: UploadFile, rule: FileRule) -> StoredFile:
    """
    Validates and writes an upload to `<area>/<Y>/<M>/<D>/<prefix><slug>_<ms><ext>`.

    The size ceiling is enforced again while streaming; an oversized partial
    file is removed before the error is raised.
    """
    extension = validate_upload(upload, rule)

    now = time_utils.utcnow()
    stem, _ = split_filename(upload.filename)
    file_name = f"{rule.name_prefix}{sanitize_filename(stem)}_{time_utils.timestamp_ms()}{extension}"
    relative_path = f"/{rule.area}/{now.year}/{now.month}/{now.day}/{file_name}"

    destination = _absolute(relative_path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    try:
        with open(destination, "wb") as out:
            while True:
                chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > rule.max_size:
                    raise ValidationError(f"File exceeds {_format_size(rule.max_size)} limit")
                out.write(chunk)
    except BaseException:
        _unlink_quietly(destination)
        raise

    logger.info(f"Stored {rule.label} file {relative_path} ({written} bytes)")

    return StoredFile(
        relative_path=relative_path,
        file_type=extension.lstrip(".").upper(),
        size=written,
    )


def delete_stored_file(relative_path: Optional[str]) -> bool:
    """
    Removes a stored file. Never raises; cleanup failures are logged.

    Returns:
        True if a file was removed
    """
    if not relative_path:
        return False
    try:
        target = _absolute(relative_path)
        if target.exists():
            os.remove(target)
            logger.info(f"Deleted stored file {relative_path}")
            return True
    except (OSError, ValueError) as e:
        logger.error(f"Failed to delete stored file {relative_path}: {e}")
    return False


def stored_file_exists(relative_path: str) -> bool:
    return _absolute(relative_path).exists()


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to remove partial upload {path}: {e}")
