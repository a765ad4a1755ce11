"""Aggregates all v1 API routers into a single router."""

from fastapi import APIRouter

from vidshare.api.v1.health import router as health_router
from vidshare.api.v1.subscriptions import router as subscriptions_router
from vidshare.api.v1.users import router as users_router
from vidshare.api.v1.videos import router as videos_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(health_router)
v1_router.include_router(users_router)
v1_router.include_router(videos_router)
v1_router.include_router(subscriptions_router)
