"""Subscription API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.session import get_db
from vidshare.dependencies import get_current_user
from vidshare.models.user import User
from vidshare.schemas.common import ApiResponse
from vidshare.schemas.user import SubscriptionToggleResponse
from vidshare.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/c/{channel_id}", response_model=ApiResponse[SubscriptionToggleResponse])
async def toggle_subscription(
    channel_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    subscribed = await SubscriptionService(db).toggle(user.id, channel_id)
    return ApiResponse(
        message="Subscribed" if subscribed else "Unsubscribed",
        data=SubscriptionToggleResponse(channel_id=channel_id, subscribed=subscribed),
    )
