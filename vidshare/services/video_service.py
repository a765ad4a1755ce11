"""Video service: create, list, update and delete video records and their media."""

import logging
import uuid
from pathlib import Path

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.models.video import Video
from vidshare.models.watch_history import WatchHistoryEntry
from vidshare.utils.errors import ApiError
from vidshare.utils.storage import MediaStorage

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "createdAt": Video.created_at,
    "title": Video.title,
    "duration": Video.duration,
}


def _escape_like(term: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class VideoService:
    def __init__(self, db: AsyncSession, storage: MediaStorage):
        self.db = db
        self.storage = storage

    async def create_video(
        self,
        owner_id: uuid.UUID,
        title: str,
        description: str,
        video_path: Path,
        thumbnail_path: Path,
    ) -> Video:
        """Upload both files, then create the record."""
        stored_video = await self.storage.store(video_path, folder="videos")
        if not stored_video:
            raise ApiError.internal("Unable to upload the video")

        stored_thumb = await self.storage.store(thumbnail_path, folder="thumbnails")
        if not stored_thumb:
            await self.storage.delete(stored_video.url)
            raise ApiError.internal("Unable to upload thumbnail")

        video = Video(
            owner_id=owner_id,
            title=title.strip(),
            description=description.strip(),
            video_file=stored_video.url,
            thumbnail=stored_thumb.url,
            duration=stored_video.duration,
        )
        self.db.add(video)
        await self.db.flush()
        logger.info("Created video %s for owner %s", video.id, owner_id)
        return video

    async def get_video(self, video_id: uuid.UUID) -> Video | None:
        result = await self.db.execute(select(Video).where(Video.id == video_id))
        return result.scalar_one_or_none()

    async def get_owned_video(self, video_id: uuid.UUID, user_id: uuid.UUID, action: str) -> Video:
        video = await self.get_video(video_id)
        if not video:
            raise ApiError.not_found("Video not found")
        if video.owner_id != user_id:
            raise ApiError.unauthorized(f"Only owner can {action} the video")
        return video

    async def list_videos(
        self,
        page: int = 1,
        limit: int = 10,
        query: str | None = None,
        owner_id: uuid.UUID | None = None,
        sort_by: str = "createdAt",
        sort_type: str = "desc",
    ) -> tuple[list[Video], int]:
        filters = []
        if query:
            pattern = f"%{_escape_like(query.strip())}%"
            filters.append(
                or_(
                    Video.title.ilike(pattern, escape="\\"),
                    Video.description.ilike(pattern, escape="\\"),
                )
            )
        if owner_id:
            filters.append(Video.owner_id == owner_id)

        column = SORTABLE_FIELDS.get(sort_by, Video.created_at)
        order = column.asc() if sort_type == "asc" else column.desc()

        result = await self.db.execute(
            select(Video)
            .where(*filters)
            .order_by(order, Video.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        videos = list(result.scalars().all())

        count_result = await self.db.execute(select(func.count()).select_from(Video).where(*filters))
        total = count_result.scalar() or 0

        return videos, total

    async def update_video(
        self,
        video: Video,
        title: str,
        description: str,
        thumbnail_path: Path | None = None,
    ) -> Video:
        """Update details; a new thumbnail replaces the old one only after the record is committed."""
        old_thumbnail = None
        if thumbnail_path is not None:
            stored = await self.storage.store(thumbnail_path, folder="thumbnails")
            if not stored:
                raise ApiError.internal("Unable to upload thumbnail")
            old_thumbnail = video.thumbnail
            video.thumbnail = stored.url

        video.title = title.strip()
        video.description = description.strip()
        await self.db.flush()
        await self.db.commit()

        if old_thumbnail:
            await self.storage.delete(old_thumbnail)
        return video

    async def delete_video(self, video: Video) -> None:
        await self.storage.delete(video.video_file)
        await self.storage.delete(video.thumbnail)
        await self.db.execute(delete(WatchHistoryEntry).where(WatchHistoryEntry.video_id == video.id))
        await self.db.delete(video)
        await self.db.flush()
        logger.info("Deleted video %s", video.id)
