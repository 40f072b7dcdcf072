"""
Image uploads

Files land under UPLOADS_PATH (optionally in a subdirectory) with a random
filename; callers embed the returned relative path in their record.
"""

import os
import re
import uuid
from pathlib import Path
from typing import List, Tuple

from fastapi import UploadFile

from errors import ValidationError

MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_FILES = 5
ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")


def uploads_root() -> Path:
    return Path(os.getenv("UPLOADS_PATH", "uploads"))


def _check_type(file: UploadFile) -> str:
    ext = os.path.splitext(file.filename or "")[1]
    mimetype = file.content_type or ""
    if not (ALLOWED_TYPES.search(ext.lower()) and ALLOWED_TYPES.search(mimetype)):
        raise ValidationError("Only image files are allowed")
    return ext


def _read(file: UploadFile) -> Tuple[str, bytes]:
    ext = _check_type(file)
    content = file.file.read(MAX_FILE_SIZE + 1)
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError("File too large (max 5MB)")
    return ext, content


def _write(ext: str, content: bytes, prefix: str, subdir: str) -> str:
    target_dir = uploads_root() / subdir if subdir else uploads_root()
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{prefix}-{uuid.uuid4()}{ext}"
    (target_dir / filename).write_bytes(content)
    return "/".join(p for p in ("uploads", subdir, filename) if p)


def save_upload(file: UploadFile, prefix: str, subdir: str = "") -> str:
    """Validate and store one image; return its path relative to the site root."""
    ext, content = _read(file)
    return _write(ext, content, prefix, subdir)


def save_uploads(files: List[UploadFile], prefix: str, subdir: str = "", max_count: int = MAX_FILES) -> List[str]:
    """Store a batch of images; nothing is written unless every file is acceptable."""
    if len(files) > max_count:
        raise ValidationError(f"Too many files (max {max_count})")
    checked = [_read(f) for f in files]
    return [_write(ext, content, prefix, subdir) for ext, content in checked]
