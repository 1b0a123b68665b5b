"""
Store interface consumed by the lifecycle manager and event processor.

EventStore is the narrow capability set the core needs: select, insert,
conditional update and delete over schedules and events. SqlEventStore
implements it over the SQLAlchemy repositories; each call is its own unit of
work, so no multi-row transaction spans two calls.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.orm import sessionmaker

from eventide.core.memory.db import db_session
from eventide.core.memory.repository import EventRepository, ScheduleRepository
from eventide.core.schedule.models import Event, EventStatus, Schedule

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    def get_schedule(self, schedule_id: str) -> Optional[Schedule]: ...

    def insert_event(self, schedule: Schedule, plan_start: int) -> Event: ...

    def select_due_events(self, now: int) -> List[Event]: ...

    def claim_event(self, event_id: str, now: int) -> bool: ...

    def finish_event(self, event_id: str, status: EventStatus, end: int) -> bool: ...

    def delete_events(self, schedule_id: str, only_unscheduled: bool = False) -> int: ...

    def list_events(self, schedule_id: str) -> List[Event]: ...

    def latest_claimed_plan_start(self, schedule_id: str) -> Optional[int]: ...


class SqlEventStore:
    """EventStore backed by the SQLite database."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        """
        session_factory: sessionmaker to open sessions with; defaults to the
        application's SessionLocal.
        """
        self._session_factory = session_factory

    def _session(self):
        return db_session(self._session_factory)

    # --- schedules ---

    def insert_schedule(
        self,
        cron: str,
        start_at: int,
        end_at: int,
        message_id: Optional[str] = None,
        user_id: Optional[str] = None,
        schedule_id: Optional[str] = None,
    ) -> Schedule:
        with self._session() as db:
            record = ScheduleRepository.create(
                db,
                schedule_id=schedule_id or str(uuid.uuid4()),
                cron=cron,
                start_at=start_at,
                end_at=end_at,
                message_id=message_id,
                user_id=user_id,
            )
            return Schedule.model_validate(record)

    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        with self._session() as db:
            record = ScheduleRepository.get_by_id(db, schedule_id)
            return Schedule.model_validate(record) if record else None

    def list_schedules(self, user_id: Optional[str] = None) -> List[Schedule]:
        with self._session() as db:
            if user_id is None:
                records = ScheduleRepository.list_all(db)
            else:
                records = ScheduleRepository.list_by_user(db, user_id)
            return [Schedule.model_validate(r) for r in records]

    def count_schedules(self, user_id: str) -> int:
        with self._session() as db:
            return ScheduleRepository.count_by_user(db, user_id)

    def update_schedule(self, schedule_id: str, fields: Dict[str, Any]) -> Optional[Schedule]:
        with self._session() as db:
            record = ScheduleRepository.update(db, schedule_id, fields)
            return Schedule.model_validate(record) if record else None

    def delete_schedule(self, schedule_id: str) -> bool:
        with self._session() as db:
            return ScheduleRepository.delete(db, schedule_id)

    # --- events ---

    def insert_event(self, schedule: Schedule, plan_start: int) -> Event:
        with self._session() as db:
            record = EventRepository.create(
                db,
                event_id=str(uuid.uuid4()),
                schedule_id=schedule.id,
                message_id=schedule.message_id,
                user_id=schedule.user_id,
                plan_start=plan_start,
            )
            return Event.model_validate(record)

    def get_event(self, event_id: str) -> Optional[Event]:
        with self._session() as db:
            record = EventRepository.get_by_id(db, event_id)
            return Event.model_validate(record) if record else None

    def select_due_events(self, now: int) -> List[Event]:
        with self._session() as db:
            return [Event.model_validate(r) for r in EventRepository.list_due(db, now)]

    def claim_event(self, event_id: str, now: int) -> bool:
        with self._session() as db:
            return EventRepository.claim(db, event_id, now)

    def finish_event(self, event_id: str, status: EventStatus, end: int) -> bool:
        with self._session() as db:
            return EventRepository.finish(db, event_id, EventStatus(status).value, end)

    def delete_events(self, schedule_id: str, only_unscheduled: bool = False) -> int:
        with self._session() as db:
            return EventRepository.delete_by_schedule(db, schedule_id, only_unscheduled=only_unscheduled)

    def list_events(self, schedule_id: str) -> List[Event]:
        with self._session() as db:
            return [Event.model_validate(r) for r in EventRepository.list_by_schedule(db, schedule_id)]

    def latest_claimed_plan_start(self, schedule_id: str) -> Optional[int]:
        with self._session() as db:
            return EventRepository.latest_claimed_plan_start(db, schedule_id)
