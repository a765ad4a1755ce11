"""Video API routes: list, upload, get, update, delete."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.session import get_db
from vidshare.dependencies import get_current_user
from vidshare.models.user import User
from vidshare.schemas.common import ApiResponse
from vidshare.schemas.video import VideoListResponse, VideoResponse
from vidshare.services.user_service import UserService
from vidshare.services.video_service import VideoService
from vidshare.utils.errors import ApiError
from vidshare.utils.storage import MediaStorage, get_storage
from vidshare.utils.uploads import has_file, spooled_uploads

router = APIRouter(prefix="/videos", tags=["videos"])


def _require_details(title: str | None, description: str | None) -> None:
    if any(not (field or "").strip() for field in (title, description)):
        raise ApiError.bad_request("All fields are required")


@router.get("", response_model=ApiResponse[VideoListResponse])
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    query: str | None = None,
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    sort_by: Literal["createdAt", "title", "duration"] = Query("createdAt", alias="sortBy"),
    sort_type: Literal["asc", "desc"] = Query("desc", alias="sortType"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    service = VideoService(db, storage)
    videos, total = await service.list_videos(page, limit, query, user_id, sort_by, sort_type)
    return ApiResponse(
        message="Videos fetched successfully",
        data=VideoListResponse(
            items=[VideoResponse.model_validate(v) for v in videos],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post("", response_model=ApiResponse[VideoResponse], status_code=status.HTTP_201_CREATED)
async def upload_video(
    title: str | None = Form(None),
    description: str | None = Form(None),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    _require_details(title, description)
    if not (has_file(video_file) and has_file(thumbnail)):
        raise ApiError.bad_request("Video file and thumbnail are required")

    service = VideoService(db, storage)
    async with spooled_uploads(video_file, thumbnail) as (video_path, thumbnail_path):
        video = await service.create_video(user.id, title, description, video_path, thumbnail_path)

    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        message="Video uploaded successfully",
        data=VideoResponse.model_validate(video),
    )


@router.get("/{video_id}", response_model=ApiResponse[VideoResponse])
async def get_video(
    video_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    video = await VideoService(db, storage).get_video(video_id)
    if not video:
        raise ApiError.not_found("Video not found")
    await UserService(db).record_watch(user.id, video.id)
    return ApiResponse(message="Video fetched successfully", data=VideoResponse.model_validate(video))


@router.patch("/{video_id}", response_model=ApiResponse[VideoResponse])
async def update_video(
    video_id: uuid.UUID,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    service = VideoService(db, storage)
    video = await service.get_owned_video(video_id, user.id, "update")
    _require_details(title, description)

    async with spooled_uploads(thumbnail) as (thumbnail_path,):
        video = await service.update_video(video, title, description, thumbnail_path)

    return ApiResponse(message="Video updated successfully", data=VideoResponse.model_validate(video))


@router.delete("/{video_id}", response_model=ApiResponse[dict])
async def delete_video(
    video_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    service = VideoService(db, storage)
    video = await service.get_owned_video(video_id, user.id, "delete")
    await service.delete_video(video)
    return ApiResponse(message="Video deleted successfully", data={})
