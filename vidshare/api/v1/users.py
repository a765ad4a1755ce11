"""User API routes: registration, sessions, profile and channel views."""

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.config import AuthConfig
from vidshare.db.session import get_db
from vidshare.dependencies import ACCESS_COOKIE, REFRESH_COOKIE, get_auth_config, get_current_user
from vidshare.models.user import User
from vidshare.schemas.common import ApiResponse
from vidshare.schemas.user import (
    ChangePasswordRequest,
    ChannelProfileResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenPairResponse,
    UpdateAccountRequest,
    UserResponse,
)
from vidshare.schemas.video import WatchedVideoResponse
from vidshare.services.token_service import TokenPair, TokenService
from vidshare.services.user_service import UserService
from vidshare.utils.errors import ApiError
from vidshare.utils.storage import MediaStorage, StoredMedia, get_storage
from vidshare.utils.uploads import has_file, spooled_uploads

router = APIRouter(prefix="/users", tags=["users"])


def _blank(*values: str | None) -> bool:
    return any(not (value or "").strip() for value in values)


def _set_auth_cookies(response: Response, tokens: TokenPair, config: AuthConfig) -> None:
    for key, value, max_age in (
        (ACCESS_COOKIE, tokens.access_token, config.access_max_age),
        (REFRESH_COOKIE, tokens.refresh_token, config.refresh_max_age),
    ):
        response.set_cookie(
            key=key,
            value=value,
            httponly=config.cookie.httponly,
            secure=config.cookie.secure,
            samesite=config.cookie.samesite,
            max_age=max_age,
        )


def _clear_auth_cookies(response: Response, config: AuthConfig) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key,
            httponly=config.cookie.httponly,
            secure=config.cookie.secure,
            samesite=config.cookie.samesite,
        )


async def _store_single(upload: UploadFile | None, storage: MediaStorage, folder: str, label: str) -> StoredMedia:
    if not has_file(upload):
        raise ApiError.bad_request(f"{label} file is missing")
    async with spooled_uploads(upload) as (path,):
        stored = await storage.store(path, folder=folder)
    if not stored:
        raise ApiError.internal(f"Error while uploading {label.lower()}")
    return stored


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    full_name: str | None = Form(None, alias="fullName"),
    email: str | None = Form(None),
    username: str | None = Form(None),
    password: str | None = Form(None),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    config: AuthConfig = Depends(get_auth_config),
):
    if _blank(full_name, email, username, password):
        raise ApiError.bad_request("All fields are required")
    if "@" not in email:
        raise ApiError.bad_request("Invalid email address")

    service = UserService(db, config.bcrypt_rounds)
    if await service.username_taken(username):
        raise ApiError.conflict("User with this username already exists")
    if not has_file(avatar):
        raise ApiError.bad_request("Avatar file is required")

    async with spooled_uploads(avatar, cover_image) as (avatar_path, cover_path):
        stored_avatar = await storage.store(avatar_path, folder="avatars")
        if not stored_avatar:
            raise ApiError.internal("Unable to upload avatar")
        # Cover image is optional; a failed upload just leaves it empty
        stored_cover = await storage.store(cover_path, folder="covers") if cover_path else None

    try:
        user = await service.create(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar=stored_avatar.url,
            cover_image=stored_cover.url if stored_cover else "",
        )
    except ApiError:
        await storage.delete(stored_avatar.url)
        if stored_cover:
            await storage.delete(stored_cover.url)
        raise

    created = await service.get_by_id(user.id)
    if not created:
        raise ApiError.internal("Something went wrong while registering the user")

    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        message="User registered successfully",
        data=UserResponse.model_validate(created),
    )


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
):
    if _blank(payload.email):
        raise ApiError.bad_request("Email is required")

    service = UserService(db, config.bcrypt_rounds)
    user = await service.get_by_email(payload.email)
    if not user:
        raise ApiError.not_found("User does not exist")
    if not await service.check_password(user.id, payload.password or ""):
        raise ApiError.unauthorized("Invalid user credentials")

    tokens = await TokenService(db, config).issue(user)
    _set_auth_cookies(response, tokens, config)
    return ApiResponse(
        message="User logged in successfully",
        data=LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
):
    await UserService(db).clear_refresh_token(user.id)
    _clear_auth_cookies(response, config)
    return ApiResponse(message="User logged out", data={})


@router.post("/resetToken", response_model=ApiResponse[TokenPairResponse])
async def refresh_access_token(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
):
    """Exchange a refresh token (from cookie or body) for a new token pair."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token and payload is not None:
        token = payload.refresh_token

    tokens = await TokenService(db, config).rotate(token)
    _set_auth_cookies(response, tokens, config)
    return ApiResponse(
        message="Access token refreshed",
        data=TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token),
    )


@router.api_route("/resetPassword", methods=["POST", "PATCH"], response_model=ApiResponse[dict])
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
):
    if _blank(payload.old_password, payload.new_password):
        raise ApiError.bad_request("All fields are required")

    service = UserService(db, config.bcrypt_rounds)
    if not await service.check_password(user.id, payload.old_password):
        raise ApiError.bad_request("Invalid old password")

    await service.update_password(user.id, payload.new_password)
    return ApiResponse(message="Password changed successfully", data={})


@router.api_route("/getUser", methods=["GET", "POST"], response_model=ApiResponse[UserResponse])
async def get_user(user: User = Depends(get_current_user)):
    return ApiResponse(message="User fetched successfully", data=UserResponse.model_validate(user))


@router.patch("/updateUser", response_model=ApiResponse[UserResponse])
async def update_account(
    payload: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if _blank(payload.full_name, payload.email):
        raise ApiError.bad_request("All fields are required")
    if "@" not in payload.email:
        raise ApiError.bad_request("Invalid email address")

    user = await UserService(db).update_account(user, payload.full_name, payload.email)
    return ApiResponse(message="Account details updated successfully", data=UserResponse.model_validate(user))


@router.patch("/updateAvatar", response_model=ApiResponse[UserResponse])
async def update_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    stored = await _store_single(avatar, storage, "avatars", "Avatar")
    old_avatar = user.avatar
    user = await UserService(db).set_avatar(user, stored.url)
    if old_avatar:
        await storage.delete(old_avatar)
    return ApiResponse(message="Avatar updated successfully", data=UserResponse.model_validate(user))


@router.patch("/updateCoverImage", response_model=ApiResponse[UserResponse])
async def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    stored = await _store_single(cover_image, storage, "covers", "Cover image")
    old_cover = user.cover_image
    user = await UserService(db).set_cover_image(user, stored.url)
    if old_cover:
        await storage.delete(old_cover)
    return ApiResponse(message="Cover image updated successfully", data=UserResponse.model_validate(user))


@router.get("/channel/{username}", response_model=ApiResponse[ChannelProfileResponse])
async def get_channel_profile(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if _blank(username):
        raise ApiError.bad_request("Username is missing")

    profile = await UserService(db).get_channel_profile(username, viewer_id=user.id)
    if not profile:
        raise ApiError.not_found("Channel does not exist")
    return ApiResponse(message="User channel fetched successfully", data=profile)


@router.get("/watchHistory", response_model=ApiResponse[list[WatchedVideoResponse]])
async def get_watch_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await UserService(db).get_watch_history(user.id)
    return ApiResponse(message="Watch history fetched successfully", data=history)
