"""Expired Task Sweeper Scheduler for the TaskDesk system."""

import asyncio
import logging
from typing import Optional

from taskdesk.core.config import settings
from taskdesk.core.database import session_manager
from taskdesk.services.TaskLifecycleService import TaskLifecycleService

logger = logging.getLogger(__name__)


async def run_expiration_sweep() -> int:
    """
    Run one sweep in its own session.

    Returns:
        int: number of tasks marked failed
    """
    async with session_manager.get_session() as db:
        result = await TaskLifecycleService(db).sweep_expired()
    return result.updated_count


async def expire_overdue_tasks_scheduler(interval_seconds: Optional[float] = None):
    """Background task that fails overdue tasks every ``SWEEP_INTERVAL_SECONDS``."""
    interval = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
    logger.info(f"⏰ Expiration sweeper started, running every {interval}s")

    pass_count = 0
    while True:
        pass_count += 1
        try:
            updated = await run_expiration_sweep()
            if updated:
                logger.info(f"✅ Sweep #{pass_count}: {updated} expired tasks marked failed")
        except Exception as e:
            # A failed pass must not stop the loop; the next pass retries.
            logger.error(f"❌ Sweep #{pass_count} failed: {e}", exc_info=True)
        await asyncio.sleep(interval)
