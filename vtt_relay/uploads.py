"""Staging of uploaded .vtt files: validate, spool to UPLOAD_DIR, always delete."""

import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import UploadFile

from vtt_relay.errors import UploadValidationError

logger = structlog.get_logger(__name__)

ALLOWED_EXTENSION = ".vtt"
_CHUNK_SIZE = 64 * 1024


def validate_upload(upload: UploadFile, max_bytes: int) -> None:
    """Reject by name and declared size before anything touches the disk."""
    if not upload.filename:
        raise UploadValidationError("No file uploaded")
    if Path(upload.filename).suffix.lower() != ALLOWED_EXTENSION:
        raise UploadValidationError("Only .vtt files are allowed")
    if upload.size is not None and upload.size > max_bytes:
        raise UploadValidationError(f"File too large. Maximum size is {max_bytes} bytes")


def remove_staged_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error("upload.cleanup_failed", path=str(path), error=str(e))
    else:
        logger.info("upload.cleanup_complete", path=str(path))


@asynccontextmanager
async def staged_upload(
    upload: UploadFile, upload_dir: Path, max_bytes: int
) -> AsyncIterator[Path]:
    """Write the upload to a temp file in upload_dir and yield its path.

    The file is removed when the block exits, whether it succeeded or raised.
    The size limit is enforced again while copying since upload.size is
    client-declared.
    """
    validate_upload(upload, max_bytes)
    fd, name = tempfile.mkstemp(suffix=ALLOWED_EXTENSION, dir=upload_dir)
    path = Path(name)
    try:
        written = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadValidationError(
                        f"File too large. Maximum size is {max_bytes} bytes"
                    )
                out.write(chunk)
        logger.info(
            "upload.staged", filename=upload.filename, path=str(path), size=written
        )
        yield path
    finally:
        remove_staged_file(path)


def read_staged_text(path: Path) -> str:
    """Read a staged upload as UTF-8 (a leading BOM is dropped, undecodable bytes become U+FFFD)."""
    return path.read_text(encoding="utf-8-sig", errors="replace")
