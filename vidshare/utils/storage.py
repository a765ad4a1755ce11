"""
Media asset storage: Cloudinary in production, local filesystem for development.

Both backends hand out URLs whose path ends in ``/v<version>/<public id>.<ext>``
so a stored asset can be deleted again from nothing but its URL.
"""

import asyncio
import logging
import posixpath
import re
import shutil
import subprocess
import time
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import unquote, urlparse

import cloudinary
import cloudinary.uploader

from vidshare.config import settings

logger = logging.getLogger(__name__)

VIDEO_SUFFIXES = {".mp4", ".mov", ".webm", ".mkv", ".avi", ".m4v", ".ogg"}

_VERSION_MARKER = re.compile(r"/v\d+/")


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str
    resource_type: str = "image"
    duration: float = 0.0


def extract_public_id(url: str) -> str | None:
    """Return the provider object id: the path between the last version marker and the extension."""
    path = urlparse(url).path
    if not path:
        return None
    markers = list(_VERSION_MARKER.finditer(path))
    tail = path[markers[-1].end():] if markers else path.rsplit("/", 1)[-1]
    public_id, _ext = posixpath.splitext(tail)
    return unquote(public_id) or None


def resource_type_from_url(url: str) -> str:
    segments = urlparse(url).path.split("/")
    if "video" in segments:
        return "video"
    if "raw" in segments:
        return "raw"
    return "image"


class MediaStorage:
    """Interface shared by the storage backends."""

    async def store(self, local_path: Path, folder: str = "") -> StoredMedia | None:
        """Upload a local file. Returns None on failure; the local file is always removed."""
        raise NotImplementedError

    async def delete(self, url: str) -> None:
        """Best-effort removal of a previously stored asset. Never raises."""
        raise NotImplementedError


class CloudinaryStorage(MediaStorage):
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = ""):
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder = folder

    async def store(self, local_path: Path, folder: str = "") -> StoredMedia | None:
        target = "/".join(part for part in (self.folder, folder) if part)
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                str(local_path),
                resource_type="auto",
                folder=target or None,
            )
        except Exception as e:
            logger.warning("Cloudinary upload failed for %s: %s", local_path.name, e)
            return None
        finally:
            local_path.unlink(missing_ok=True)

        logger.info("Uploaded %s to %s", local_path.name, result.get("secure_url"))
        return StoredMedia(
            url=result.get("secure_url") or result["url"],
            public_id=result["public_id"],
            resource_type=result.get("resource_type", "image"),
            duration=float(result.get("duration") or 0.0),
        )

    async def delete(self, url: str) -> None:
        if not url:
            return
        public_id = extract_public_id(url)
        if not public_id:
            logger.warning("Could not extract a public id from %s", url)
            return
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type=resource_type_from_url(url),
                invalidate=True,
            )
        except Exception as e:
            logger.warning("Cloudinary delete failed for %s: %s", public_id, e)
            return
        if result.get("result") != "ok":
            logger.warning("Cloudinary delete of %s returned %s", public_id, result.get("result"))


class LocalStorage(MediaStorage):
    """Stores files on local filesystem under STORAGE_LOCAL_PATH, served at /media."""

    def __init__(self, base: Path | None = None, url_prefix: str = "/media"):
        self.base = base or settings.STORAGE_LOCAL_PATH
        self.base.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    async def store(self, local_path: Path, folder: str = "") -> StoredMedia | None:
        try:
            version = f"v{int(time.time())}"
            name = f"{uuid.uuid4().hex[:12]}{local_path.suffix.lower()}"
            relative = "/".join(part for part in (version, folder, name) if part)
            dest = self.base / relative
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(local_path), str(dest))

            resource_type = "video" if dest.suffix in VIDEO_SUFFIXES else "image"
            duration = await asyncio.to_thread(self._probe_duration, dest) if resource_type == "video" else 0.0
        except OSError as e:
            logger.warning("Local store failed for %s: %s", local_path.name, e)
            return None
        finally:
            local_path.unlink(missing_ok=True)

        url = f"{self.url_prefix}/{relative}"
        return StoredMedia(
            url=url,
            public_id=extract_public_id(url) or name,
            resource_type=resource_type,
            duration=duration,
        )

    async def delete(self, url: str) -> None:
        if not url:
            return
        path = unquote(urlparse(url).path)
        if not path.startswith(self.url_prefix + "/"):
            logger.warning("Not a local media URL: %s", url)
            return
        try:
            base = self.base.resolve()
            target = (base / path[len(self.url_prefix) + 1:]).resolve()
            target.relative_to(base)  # raises ValueError if the path escaped
            target.unlink(missing_ok=True)
        except (OSError, ValueError) as e:
            logger.warning("Local delete failed for %s: %s", url, e)

    @staticmethod
    def _probe_duration(video_path: Path) -> float:
        """Use ffprobe to get video duration in seconds."""
        try:
            result = subprocess.run(
                [
                    "ffprobe", "-v", "quiet", "-show_entries",
                    "format=duration", "-of", "csv=p=0", str(video_path),
                ],
                capture_output=True, text=True, timeout=10,
            )
            return float(result.stdout.strip())
        except Exception as e:
            logger.warning("Failed to probe duration for %s: %s", video_path, e)
            return 0.0


@lru_cache
def get_storage() -> MediaStorage:
    if settings.STORAGE_BACKEND == "local":
        return LocalStorage()
    return CloudinaryStorage(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        folder=settings.CLOUDINARY_FOLDER,
    )
