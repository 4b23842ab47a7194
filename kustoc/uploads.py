"""
Uploaded files (interaction attachments, jump images).

Files are stored flat in the uploads directory under a generated name,
`{field}-{epoch_ms}-{random}{ext}`, so two uploads never collide and the
client-supplied name never reaches the filesystem. Only the generated name
is stored in the database.
"""

import logging
import re
import secrets
import time
from pathlib import Path
from typing import BinaryIO

from kustoc import config, paths
from kustoc.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_STORED_NAME_RE = re.compile(r"^[A-Za-z0-9_]+-\d+-\d+(\.[A-Za-z0-9]{1,10})?$")
_EXT_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")
_FIELD_RE = re.compile(r"^[A-Za-z0-9_]+$")


def unique_name(field: str, original_filename: str | None) -> str:
    if not _FIELD_RE.match(field or ""):
        raise ValidationError(f"Invalid upload field name: {field!r}")
    ext = Path(original_filename or "").suffix.lower()
    if not _EXT_RE.match(ext):
        ext = ""
    return f"{field}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def save(stream: BinaryIO, field: str, original_filename: str | None) -> str:
    """
    Copy *stream* into the uploads directory. Returns the stored filename.

    Raises ValidationError (and leaves nothing behind) when the file exceeds
    KUSTOC_MAX_UPLOAD_BYTES.
    """
    name = unique_name(field, original_filename)
    target = paths.uploads_dir() / name
    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > config.MAX_UPLOAD_BYTES:
                    raise ValidationError(f"Upload exceeds {config.MAX_UPLOAD_BYTES} bytes")
                out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    logger.info("upload stored: %s (%d bytes, from %r)", name, written, original_filename)
    return name


def resolve(filename: str) -> Path:
    """Path of a stored upload. Rejects anything that is not a generated name."""
    if not _STORED_NAME_RE.match(filename or ""):
        raise NotFoundError("uploads", filename)
    path = paths.uploads_dir() / filename
    if not path.is_file():
        raise NotFoundError("uploads", filename)
    return path


def discard(filename: str):
    """Remove a stored upload whose database write failed."""
    (paths.uploads_dir() / filename).unlink(missing_ok=True)
    logger.info("upload discarded: %s", filename)
