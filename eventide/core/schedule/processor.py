"""
Event processor: claim due events, run the handler, materialize the next occurrence.

Meant to be invoked repeatedly by an external timer (or the in-process loop in
eventide.core.schedule.scheduler). Each call works on the snapshot of due
events it selected; several workers may run it at once because the claim is a
conditional update that only one of them can win.
"""
import inspect
import logging
import time
from typing import Optional

from eventide.core.schedule.handlers import EventHandler, resolve_handler
from eventide.core.schedule.lifecycle import materialize_next
from eventide.core.schedule.models import Event, EventStatus, ProcessResult
from eventide.core.schedule.store import EventStore

logger = logging.getLogger(__name__)


async def _run_handler(handler: EventHandler, event: Event) -> EventStatus:
    try:
        result = handler(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Handler failed for event %s", event.id)
        return EventStatus.FAILED
    return EventStatus.COMPLETED


async def process_event(
    store: EventStore,
    event: Event,
    handler: EventHandler,
    now: int,
    result: ProcessResult,
    end: Optional[int] = None,
) -> None:
    """Claim one candidate and, if won, execute it and materialize its successor."""
    try:
        won = store.claim_event(event.id, now)
    except Exception:
        logger.exception("Could not claim event %s", event.id)
        result.errors += 1
        return
    if not won:
        logger.debug("Event %s already claimed by another worker", event.id)
        result.skipped += 1
        return
    result.claimed += 1

    claimed = event.model_copy(
        update={"scheduled": True, "status": EventStatus.IN_PROGRESS, "start": now}
    )
    status = await _run_handler(handler, claimed)
    if status == EventStatus.COMPLETED:
        result.completed += 1
    else:
        result.failed += 1

    if event.schedule_id:
        try:
            schedule = store.get_schedule(event.schedule_id)
            if schedule is None:
                logger.info("Schedule %s gone; event %s has no successor", event.schedule_id, event.id)
            elif materialize_next(store, schedule, event.plan_start) is not None:
                result.materialized += 1
        except Exception:
            logger.exception("Could not materialize next event after %s", event.id)
            result.errors += 1

    try:
        store.finish_event(event.id, status, end if end is not None else int(time.time()))
    except Exception:
        logger.exception("Could not record status %s for event %s", status.value, event.id)
        result.errors += 1


async def process_scheduled_events(
    store: EventStore,
    handler: Optional[EventHandler] = None,
    now: Optional[int] = None,
) -> ProcessResult:
    """
    Process every event due at `now` (default: current epoch seconds).

    handler: called with each claimed event; defaults to default_event_handler.
    Store errors while selecting candidates propagate; errors on a single
    candidate are logged and counted, and the batch continues.
    """
    handler = resolve_handler(handler)
    fixed_clock = now is not None
    if now is None:
        now = int(time.time())

    result = ProcessResult()
    candidates = store.select_due_events(now)
    result.candidates = len(candidates)
    logger.debug("Found %s events due at %s", len(candidates), now)

    for event in candidates:
        await process_event(
            store,
            event,
            handler,
            now,
            result,
            end=now if fixed_clock else None,
        )

    if result.claimed:
        logger.info(
            "Processed scheduled events: claimed=%s completed=%s failed=%s materialized=%s skipped=%s errors=%s",
            result.claimed,
            result.completed,
            result.failed,
            result.materialized,
            result.skipped,
            result.errors,
        )
    return result
