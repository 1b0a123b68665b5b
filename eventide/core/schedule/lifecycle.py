"""
Schedule lifecycle: keep exactly one unclaimed frontier event per live schedule.

INSERT materializes the first occurrence in the window, DELETE removes the
schedule's events, UPDATE replaces the frontier without repeating occurrences
that were already claimed. A replayed INSERT behaves like UPDATE, so the
schedule still ends up with one frontier.
"""
import logging
from typing import Optional, Union

from eventide.core.config import settings
from eventide.core.schedule.cron import calculate_next_run
from eventide.core.schedule.models import Event, Schedule, ScheduleChange
from eventide.core.schedule.store import EventStore

logger = logging.getLogger(__name__)


def materialize_next(store: EventStore, schedule: Schedule, after: int) -> Optional[Event]:
    """
    Insert the frontier event for the first occurrence strictly after `after`.

    Returns None (and inserts nothing) when the cron expression does not
    evaluate or the occurrence falls beyond end_at.
    """
    next_run = calculate_next_run(schedule.cron, after)
    if next_run is None:
        logger.info("Schedule %s: cron %r has no next occurrence", schedule.id, schedule.cron)
        return None
    if next_run > schedule.end_at:
        logger.debug(
            "Schedule %s: next occurrence %s is past end_at %s; no more events",
            schedule.id,
            next_run,
            schedule.end_at,
        )
        return None
    event = store.insert_event(schedule, next_run)
    logger.debug("Schedule %s: materialized event %s at %s", schedule.id, event.id, next_run)
    return event


def on_schedule_change(
    store: EventStore,
    schedule: Schedule,
    change: Union[ScheduleChange, str],
    keep_history: Optional[bool] = None,
) -> Optional[Event]:
    """
    React to a schedule being inserted, updated or deleted.

    keep_history: on DELETE, remove only the frontier and keep claimed events.
    Defaults to settings.schedule_keep_event_history.

    Returns the event materialized by this change, if any. Store errors propagate.
    """
    if not isinstance(change, ScheduleChange):
        change = ScheduleChange(str(change).upper())
    logger.debug("Processing schedule %s for %s", change.value, schedule.id)

    if change == ScheduleChange.DELETE:
        if keep_history is None:
            keep_history = settings.schedule_keep_event_history
        deleted = store.delete_events(schedule.id, only_unscheduled=keep_history)
        logger.info("Schedule %s deleted; removed %s events", schedule.id, deleted)
        return None

    # INSERT and UPDATE: drop any frontier, resume after the last claimed
    # occurrence. A replayed INSERT leaves the same single frontier.
    dropped = store.delete_events(schedule.id, only_unscheduled=True)
    if dropped and change == ScheduleChange.INSERT:
        logger.info("Schedule %s: INSERT replaced %s existing frontier events", schedule.id, dropped)
    anchor = schedule.start_at - 1
    last_claimed = store.latest_claimed_plan_start(schedule.id)
    if last_claimed is not None and last_claimed > anchor:
        anchor = last_claimed
    return materialize_next(store, schedule, anchor)
