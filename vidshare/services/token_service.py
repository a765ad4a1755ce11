"""Token service: issue and rotate access/refresh token pairs."""

import hmac
import logging
import uuid
from dataclasses import dataclass

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.config import AuthConfig
from vidshare.models.user import User
from vidshare.services.user_service import UserService
from vidshare.utils.errors import ApiError
from vidshare.utils.security import create_access_token, create_refresh_token, decode_refresh_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """
    A user holds at most one live refresh token: the value stored on the
    user row. Issuing overwrites it, so every rotation revokes the previous
    token; there is no separate blacklist.
    """

    def __init__(self, db: AsyncSession, config: AuthConfig):
        self.db = db
        self.config = config

    async def issue(self, user: User) -> TokenPair:
        access = create_access_token(user.id, user.username, user.email, user.full_name, self.config)
        refresh = create_refresh_token(user.id, self.config)
        try:
            user.refresh_token = refresh
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to persist refresh token for %s: %s", user.id, e)
            raise ApiError.internal("Something went wrong while generating tokens")
        return TokenPair(access_token=access, refresh_token=refresh)

    async def rotate(self, presented: str | None) -> TokenPair:
        if not presented:
            raise ApiError.unauthorized("Unauthorized request")

        try:
            payload = decode_refresh_token(presented, self.config)
            user_id = uuid.UUID(payload["sub"])
        except (jwt.PyJWTError, KeyError, ValueError):
            raise ApiError.unauthorized("Invalid refresh token")

        user = await UserService(self.db).get_by_id(user_id, include_secrets=True)
        if not user:
            raise ApiError.unauthorized("Invalid refresh token")

        stored = user.refresh_token or ""
        if not stored or not hmac.compare_digest(stored.encode(), presented.encode()):
            logger.info("Rejected stale refresh token for user %s", user_id)
            raise ApiError.unauthorized("Refresh token is expired or used")

        return await self.issue(user)
