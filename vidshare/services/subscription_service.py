"""Subscription service: follow/unfollow channels."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.models.subscription import Subscription
from vidshare.models.user import User
from vidshare.utils.errors import ApiError


class SubscriptionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle(self, subscriber_id: uuid.UUID, channel_id: uuid.UUID) -> bool:
        """Subscribe if not subscribed, otherwise unsubscribe. Returns the new state."""
        if subscriber_id == channel_id:
            raise ApiError.bad_request("You cannot subscribe to your own channel")

        channel = await self.db.execute(select(User.id).where(User.id == channel_id))
        if channel.scalar_one_or_none() is None:
            raise ApiError.not_found("Channel does not exist")

        result = await self.db.execute(
            select(Subscription).where(
                Subscription.subscriber_id == subscriber_id,
                Subscription.channel_id == channel_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            await self.db.delete(existing)
            await self.db.flush()
            return False

        self.db.add(Subscription(subscriber_id=subscriber_id, channel_id=channel_id))
        await self.db.flush()
        return True
