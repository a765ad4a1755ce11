"""User and auth request/response schemas."""

import uuid
from datetime import datetime

from vidshare.schemas.common import CamelModel


class UserResponse(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime
    updated_at: datetime


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class LoginResponse(TokenPairResponse):
    user: UserResponse


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class ChangePasswordRequest(CamelModel):
    old_password: str | None = None
    new_password: str | None = None


class UpdateAccountRequest(CamelModel):
    full_name: str | None = None
    email: str | None = None


class ChannelProfileResponse(CamelModel):
    id: uuid.UUID
    username: str
    full_name: str
    email: str
    avatar: str
    cover_image: str = ""
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool


class OwnerSummary(CamelModel):
    full_name: str
    username: str
    avatar: str


class SubscriptionToggleResponse(CamelModel):
    channel_id: uuid.UUID
    subscribed: bool
