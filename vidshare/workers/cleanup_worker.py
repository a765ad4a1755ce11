"""
Periodic cleanup worker: removes leftover temp uploads and dangling watch-history rows.
Can be run as a cron job or scheduled task.
"""

import logging
import time
from pathlib import Path

from sqlalchemy import delete, select

from vidshare.config import settings

logger = logging.getLogger(__name__)

# Temp uploads older than this were abandoned by a crashed request
TEMP_MAX_AGE_HOURS = 6


def cleanup_temp_files(temp_dir: Path | None = None, max_age_hours: float = TEMP_MAX_AGE_HOURS) -> int:
    """Remove temp upload files older than max_age_hours. Returns count removed."""
    temp_dir = temp_dir or settings.UPLOAD_TEMP_PATH
    if not temp_dir.exists():
        return 0

    cutoff = time.time() - (max_age_hours * 3600)
    removed = 0

    for item in temp_dir.iterdir():
        if not item.is_file():
            continue
        try:
            if item.stat().st_mtime < cutoff:
                item.unlink()
                removed += 1
                logger.info("Cleaned up temp upload: %s", item.name)
        except OSError as e:
            logger.warning("Failed to clean %s: %s", item, e)

    return removed


async def prune_watch_history(session_factory=None) -> int:
    """Delete watch-history rows whose video no longer exists."""
    from vidshare.db.session import async_session_factory
    from vidshare.models.video import Video
    from vidshare.models.watch_history import WatchHistoryEntry

    session_factory = session_factory or async_session_factory
    async with session_factory() as session:
        result = await session.execute(
            delete(WatchHistoryEntry)
            .where(WatchHistoryEntry.video_id.not_in(select(Video.id)))
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    pruned = result.rowcount or 0
    if pruned:
        logger.info("Pruned %d dangling watch-history rows", pruned)
    return pruned


def run_cleanup():
    """Synchronous entry point for running all cleanup tasks."""
    import asyncio

    logger.info("Starting cleanup...")
    temp_count = cleanup_temp_files()
    pruned_count = asyncio.run(prune_watch_history())
    logger.info("Cleanup complete: %d temp files removed, %d history rows pruned", temp_count, pruned_count)
    return temp_count, pruned_count


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_cleanup()
