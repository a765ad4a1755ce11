"""User service: credential store, profile updates and profile aggregations."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from vidshare.models.subscription import Subscription
from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.models.watch_history import WatchHistoryEntry
from vidshare.schemas.user import ChannelProfileResponse, OwnerSummary
from vidshare.schemas.video import WatchedVideoResponse
from vidshare.utils.errors import ApiError
from vidshare.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

_SECRET_COLUMNS = (defer(User.password_hash, raiseload=True), defer(User.refresh_token, raiseload=True))


class UserService:
    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 10):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    # ── Lookups ──────────────────────────────────────────

    async def get_by_id(self, user_id: uuid.UUID, include_secrets: bool = False) -> User | None:
        query = select(User).where(User.id == user_id)
        if not include_secrets:
            query = query.options(*_SECRET_COLUMNS)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.username == username.strip().lower()).options(*_SECRET_COLUMNS)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Emails are not unique; the oldest account registered with it wins."""
        result = await self.db.execute(
            select(User)
            .where(User.email == email.strip().lower())
            .order_by(User.created_at.asc())
            .limit(1)
        )
        return result.scalars().first()

    async def username_taken(self, username: str) -> bool:
        result = await self.db.execute(select(exists().where(User.username == username.strip().lower())))
        return bool(result.scalar())

    # ── Writes ───────────────────────────────────────────

    async def create(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: str,
        cover_image: str = "",
    ) -> User:
        if await self.username_taken(username):
            raise ApiError.conflict("User with this username already exists")

        user = User(
            username=username.strip().lower(),
            email=email.strip().lower(),
            full_name=full_name.strip(),
            password_hash=hash_password(password, self.bcrypt_rounds),
            avatar=avatar,
            cover_image=cover_image or "",
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ApiError.conflict("User with this username already exists")
        logger.info("Created user %s (%s)", user.username, user.id)
        return user

    async def update_account(self, user: User, full_name: str, email: str) -> User:
        user.full_name = full_name.strip()
        user.email = email.strip().lower()
        await self.db.flush()
        return user

    async def set_avatar(self, user: User, url: str) -> User:
        user.avatar = url
        await self.db.flush()
        await self.db.commit()
        return user

    async def set_cover_image(self, user: User, url: str) -> User:
        user.cover_image = url
        await self.db.flush()
        await self.db.commit()
        return user

    async def check_password(self, user_id: uuid.UUID, password: str) -> bool:
        result = await self.db.execute(select(User.password_hash).where(User.id == user_id))
        return verify_password(password, result.scalar_one_or_none())

    async def update_password(self, user_id: uuid.UUID, new_password: str) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=hash_password(new_password, self.bcrypt_rounds), updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )

    async def clear_refresh_token(self, user_id: uuid.UUID) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token=None)
            .execution_options(synchronize_session=False)
        )

    async def record_watch(self, user_id: uuid.UUID, video_id: uuid.UUID) -> None:
        """Append a video to the user's history, or move it to the front if already there."""
        result = await self.db.execute(
            select(WatchHistoryEntry).where(
                WatchHistoryEntry.user_id == user_id, WatchHistoryEntry.video_id == video_id
            )
        )
        entry = result.scalar_one_or_none()
        if entry:
            entry.watched_at = datetime.now(timezone.utc)
        else:
            self.db.add(WatchHistoryEntry(user_id=user_id, video_id=video_id))
        await self.db.flush()

    # ── Aggregations ─────────────────────────────────────

    async def get_channel_profile(self, username: str, viewer_id: uuid.UUID) -> ChannelProfileResponse | None:
        channel = await self.get_by_username(username)
        if channel is None:
            return None

        subscribers_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        is_subscribed = (
            exists()
            .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer_id)
            .correlate(User)
        )
        query = select(
            User.id,
            User.username,
            User.full_name,
            User.email,
            User.avatar,
            User.cover_image,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("channels_subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(User.id == channel.id)

        row = (await self.db.execute(query)).one_or_none()
        if row is None:
            return None
        return ChannelProfileResponse.model_validate(dict(row._mapping))

    async def get_watch_history(self, user_id: uuid.UUID) -> list[WatchedVideoResponse]:
        query = (
            select(Video, User.full_name, User.username, User.avatar)
            .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
            .outerjoin(User, User.id == Video.owner_id)
            .where(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.watched_at.desc())
        )
        history = []
        for video, full_name, username, avatar in (await self.db.execute(query)).all():
            owner = None
            if username is not None:
                owner = OwnerSummary(full_name=full_name, username=username, avatar=avatar)
            history.append(
                WatchedVideoResponse(
                    id=video.id,
                    title=video.title,
                    description=video.description,
                    video_file=video.video_file,
                    thumbnail=video.thumbnail,
                    duration=video.duration,
                    owner=owner,
                    created_at=video.created_at,
                    updated_at=video.updated_at,
                )
            )
        return history
