"""
In-process driver: periodically run process_scheduled_events.

Optional; deployments that trigger processing externally (system cron hitting
/events/schedule-cron) leave SCHEDULE_RUN_IN_PROCESS off.
"""
import asyncio
import logging
from typing import Optional

from eventide.core.config import settings
from eventide.core.schedule.handlers import EventHandler
from eventide.core.schedule.processor import process_scheduled_events
from eventide.core.schedule.store import EventStore, SqlEventStore

logger = logging.getLogger(__name__)


async def run_scheduler_loop(
    store: EventStore,
    handler: Optional[EventHandler] = None,
    interval: Optional[float] = None,
) -> None:
    """Async loop: every `interval` seconds process due events."""
    interval = interval if interval is not None else settings.schedule_tick_interval
    while True:
        try:
            await process_scheduled_events(store, handler)
        except Exception as e:
            logger.exception("Schedule processing tick failed: %s", e)
        await asyncio.sleep(interval)


_scheduler_task: Optional[asyncio.Task] = None


async def start_scheduler(
    store: Optional[EventStore] = None,
    handler: Optional[EventHandler] = None,
    interval: Optional[float] = None,
) -> None:
    """Start the processing loop as a background task."""
    global _scheduler_task
    if _scheduler_task is not None:
        return
    _scheduler_task = asyncio.create_task(
        run_scheduler_loop(store or SqlEventStore(), handler, interval)
    )
    logger.info(
        "Schedule processor started (tick every %ss)",
        interval if interval is not None else settings.schedule_tick_interval,
    )


async def stop_scheduler() -> None:
    """Cancel the processing loop."""
    global _scheduler_task
    if _scheduler_task is None:
        return
    _scheduler_task.cancel()
    try:
        await _scheduler_task
    except asyncio.CancelledError:
        pass
    _scheduler_task = None
    logger.info("Schedule processor stopped")


def is_running() -> bool:
    return _scheduler_task is not None and not _scheduler_task.done()
