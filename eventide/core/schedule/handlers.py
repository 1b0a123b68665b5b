"""
Event handlers: the side effect performed when an event is due.

A handler receives the claimed Event and may be sync or async. Raising marks
the event failed; the next occurrence is materialized either way.
"""
import logging
from typing import Awaitable, Callable, Optional, Union

from eventide.core.schedule.models import Event

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Union[Awaitable[None], None]]


async def default_event_handler(event: Event) -> None:
    """Acknowledge the event in the log; used when no handler is supplied."""
    logger.info(
        "Event %s due (schedule=%s, message=%s, plan_start=%s)",
        event.id,
        event.schedule_id,
        event.message_id,
        event.plan_start,
    )


def resolve_handler(handler: Optional[EventHandler]) -> EventHandler:
    return handler if handler is not None else default_event_handler
