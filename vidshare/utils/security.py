"""Password hashing and JWT token management."""

import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt
from passlib.context import CryptContext

from vidshare.config import AuthConfig


@lru_cache
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = 10) -> str:
    return _crypt_context(rounds).hash(password[:72])


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    # Cost factor is read from the hash itself
    return _crypt_context(10).verify(plain[:72], hashed)


def create_access_token(
    user_id: uuid.UUID, username: str, email: str, full_name: str, config: AuthConfig
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "fullName": full_name,
        "exp": expire,
        "jti": uuid.uuid4().hex,
        "type": "access",
    }
    return jwt.encode(payload, config.access_token_secret, algorithm=config.algorithm)


def create_refresh_token(user_id: uuid.UUID, config: AuthConfig) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=config.refresh_token_expire_days)
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "jti": uuid.uuid4().hex,
        "type": "refresh",
    }
    return jwt.encode(payload, config.refresh_token_secret, algorithm=config.algorithm)


def decode_access_token(token: str, config: AuthConfig) -> dict:
    """Decode and validate an access token. Raises jwt.PyJWTError on failure."""
    payload = jwt.decode(token, config.access_token_secret, algorithms=[config.algorithm])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Invalid token type")
    return payload


def decode_refresh_token(token: str, config: AuthConfig) -> dict:
    """Decode and validate a refresh token. Raises jwt.PyJWTError on failure."""
    payload = jwt.decode(token, config.refresh_token_secret, algorithms=[config.algorithm])
    if payload.get("type") != "refresh":
        raise jwt.InvalidTokenError("Invalid token type")
    return payload
