"""
Schedule-to-event materialization: cron evaluation, frontier lifecycle and event processing.

Persistence: SQLite (schedule/events tables) through SqlEventStore.
"""
from eventide.core.schedule.cron import calculate_next_run, parse_cron_expression, CronExpressionError
from eventide.core.schedule.handlers import EventHandler, default_event_handler
from eventide.core.schedule.lifecycle import on_schedule_change
from eventide.core.schedule.models import Event, EventStatus, ProcessResult, Schedule, ScheduleChange
from eventide.core.schedule.processor import process_scheduled_events
from eventide.core.schedule.store import EventStore, SqlEventStore

__all__ = [
    "calculate_next_run",
    "parse_cron_expression",
    "CronExpressionError",
    "EventHandler",
    "default_event_handler",
    "on_schedule_change",
    "Event",
    "EventStatus",
    "ProcessResult",
    "Schedule",
    "ScheduleChange",
    "process_scheduled_events",
    "EventStore",
    "SqlEventStore",
]
