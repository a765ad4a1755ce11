"""Video response schemas."""

import uuid
from datetime import datetime

from pydantic import AliasChoices, Field

from vidshare.schemas.common import CamelModel
from vidshare.schemas.user import OwnerSummary


class VideoResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    owner: uuid.UUID = Field(validation_alias=AliasChoices("owner", "owner_id"))
    created_at: datetime
    updated_at: datetime


class WatchedVideoResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    owner: OwnerSummary | None = None
    created_at: datetime
    updated_at: datetime


class VideoListResponse(CamelModel):
    items: list[VideoResponse]
    total: int
    page: int
    limit: int
