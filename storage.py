"""
Binary asset storage.

Uploaded files are written under settings.UPLOAD_DIR/<kind>/ with a generated
name and served back through the /static mount, so the returned URL stays
stable for the lifetime of the file.
"""

import os
from typing import Optional

from bson import ObjectId
from fastapi import UploadFile
from loguru import logger

from config import settings
from errors import UploadError, ValidationError

# kind -> (expected MIME prefix, fallback extension)
ASSET_KINDS = {
    "avatars": ("image/", ".jpg"),
    "covers": ("image/", ".jpg"),
    "thumbnails": ("image/", ".jpg"),
    "videos": ("video/", ".mp4"),
}


def has_file(file: Optional[UploadFile]) -> bool:
    return file is not None and bool(file.filename)


async def upload_file(file: UploadFile, kind: str) -> str:
    """Persist an uploaded file and return its public URL."""
    mime_prefix, default_ext = ASSET_KINDS[kind]
    if not (file.content_type or "").startswith(mime_prefix):
        raise ValidationError(f"{file.filename} is not a valid {mime_prefix.rstrip('/')} file")

    ext = os.path.splitext(file.filename or "")[1] or default_ext
    filename = f"{ObjectId()}{ext}"
    directory = os.path.join(settings.UPLOAD_DIR, kind)
    try:
        content = await file.read()
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, filename), "wb") as f:
            f.write(content)
    except OSError as exc:
        logger.error(f"Storing {kind} upload {file.filename!r} failed: {exc}")
        raise UploadError(f"Could not store {kind[:-1]} file")

    logger.debug(f"Stored {kind} upload as {filename} ({len(content)} bytes)")
    return f"/static/{kind}/{filename}"
