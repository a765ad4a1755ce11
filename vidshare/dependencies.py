"""FastAPI dependency injection: get_auth_config, get_current_user, etc."""

import uuid

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.config import AuthConfig, settings
from vidshare.db.session import get_db
from vidshare.models.user import User
from vidshare.services.user_service import UserService
from vidshare.utils.errors import ApiError
from vidshare.utils.security import decode_access_token

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

security_scheme = HTTPBearer(auto_error=False)


def get_auth_config() -> AuthConfig:
    return settings.auth_config


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> User:
    """Extract and validate the access token (cookie first, then bearer header)."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise ApiError.unauthorized("Unauthorized request")

    try:
        payload = decode_access_token(token, config)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise ApiError.unauthorized("Invalid access token")

    user = await UserService(db).get_by_id(user_id)
    if not user:
        raise ApiError.unauthorized("Invalid access token")

    request.state.user = user
    return user
