"""Spool multipart uploads to request-scoped temp files."""

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile

from vidshare.config import settings
from vidshare.utils.errors import ApiError

CHUNK_SIZE = 1024 * 1024  # 1 MB


def has_file(file: UploadFile | None) -> bool:
    return file is not None and bool(file.filename)


async def save_temp_upload(file: UploadFile, temp_dir: Path | None = None) -> Path:
    """Write an upload to the temp directory and return its path."""
    temp_dir = temp_dir or settings.UPLOAD_TEMP_PATH
    temp_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(file.filename or "").suffix.lower()
    if len(ext) > 10:
        ext = ""
    path = temp_dir / f"{uuid.uuid4().hex}{ext}"

    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    written = 0
    try:
        with path.open("wb") as f:
            while chunk := await file.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise ApiError.bad_request(
                        f"File too large. Max is {settings.MAX_UPLOAD_SIZE_MB} MB.",
                        errors=[{"field": file.filename, "message": "too large"}],
                    )
                f.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


@asynccontextmanager
async def spooled_uploads(*files: UploadFile | None) -> AsyncIterator[list[Path | None]]:
    """
    Yield one temp path per file (None where no file was sent).

    Every temp file is removed when the block exits, whether or not the
    storage backend already consumed it.
    """
    paths: list[Path | None] = []
    try:
        for file in files:
            paths.append(await save_temp_upload(file) if has_file(file) else None)
        yield paths
    finally:
        for path in paths:
            if path is not None:
                path.unlink(missing_ok=True)
