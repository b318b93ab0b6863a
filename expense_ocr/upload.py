"""Receipt file intake: validation and storage of uploaded images."""

import logging
import random
import re
import shutil
import time
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_TYPES = {
    '.jpeg': 'image/jpeg',
    '.jpg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.pdf': 'application/pdf',
}
ALLOWED_MIME_TYPES = set(ALLOWED_TYPES.values()) | {'image/jpg'}

DANGEROUS_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class UploadValidationError(ValueError):
    """Raised when a receipt file is not acceptable."""


def validate_receipt_upload(filename: str,
                            size: int,
                            content_type: Optional[str] = None) -> None:
    """
    Check an uploaded receipt file before it is stored.

    Args:
        filename: Original client-side file name
        size: File size in bytes
        content_type: MIME type reported by the client, if any

    Raises:
        UploadValidationError: With the reason the file was rejected
    """
    if not filename:
        raise UploadValidationError("An image file is required")

    if DANGEROUS_CHARS.search(filename):
        raise UploadValidationError(f"Unsafe file name: {filename!r}")

    extension = Path(filename).suffix.lower()
    if extension not in ALLOWED_TYPES:
        raise UploadValidationError("Only image files (JPEG, PNG, GIF) or PDF receipts can be uploaded")

    if content_type is not None and content_type.lower() not in ALLOWED_MIME_TYPES:
        raise UploadValidationError(f"Unsupported content type: {content_type}")

    if size > MAX_FILE_SIZE:
        raise UploadValidationError(f"File too large: {size:,} bytes (limit {MAX_FILE_SIZE:,})")


def stored_filename(original_name: str) -> str:
    """Unique storage name, e.g. receipt-1718000000000-123456789.jpg"""
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"
    return f"receipt-{unique_suffix}{Path(original_name).suffix.lower()}"


def store_receipt(source: Path, upload_dir: Path) -> Tuple[Path, str]:
    """
    Validate a receipt file and copy it into the upload directory.

    Args:
        source: Receipt file to store
        upload_dir: Directory holding stored receipts

    Returns:
        Tuple of (stored path, public url)
    """
    source = Path(source)
    validate_receipt_upload(source.name, source.stat().st_size)

    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / stored_filename(source.name)
    shutil.copyfile(source, target)

    logger.info(f"Stored receipt {source.name} as {target.name}")
    return target, f"/uploads/{target.name}"
