"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.config import settings
from vidshare.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    return {"status": "ok", "storage": settings.STORAGE_BACKEND}


@router.get("/db")
async def db_check(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        reachable = True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        reachable = False
    return {"database": "ok" if reachable else "unreachable"}
