"""
Repository layer for database operations.

Provides high-level methods for CRUD operations on schedules and events.
Every mutation commits itself; conditional updates report the affected row count.
"""
from typing import Optional, List, Dict, Any
import logging
from sqlalchemy.orm import Session
from sqlalchemy import func

from eventide.core.memory.models import ScheduleRecord, EventRecord


logger = logging.getLogger(__name__)


def require_active_session(db: Session) -> None:
    """Raise if session is closed; prevents use-after-close."""
    if not db.is_active:
        raise RuntimeError(
            "Session already closed; do not use request session outside request scope "
            "or from another thread."
        )


def safe_refresh(db: Session, obj: Any) -> None:
    """Refresh an object after commit when the session is still usable."""
    if db.is_active:
        db.refresh(obj)


class ScheduleRepository:
    """Repository for schedule records."""

    @staticmethod
    def create(
        db: Session,
        schedule_id: str,
        cron: str,
        start_at: int,
        end_at: int,
        message_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ScheduleRecord:
        """Insert a new schedule."""
        require_active_session(db)
        record = ScheduleRecord(
            id=schedule_id,
            message_id=message_id,
            cron=cron,
            start_at=start_at,
            end_at=end_at,
            user_id=user_id,
        )
        db.add(record)
        db.commit()
        safe_refresh(db, record)
        return record

    @staticmethod
    def get_by_id(db: Session, schedule_id: str) -> Optional[ScheduleRecord]:
        """Return a schedule by id."""
        return db.query(ScheduleRecord).filter(ScheduleRecord.id == schedule_id).first()

    @staticmethod
    def list_all(db: Session) -> List[ScheduleRecord]:
        """Return all schedules."""
        return db.query(ScheduleRecord).order_by(ScheduleRecord.created_at).all()

    @staticmethod
    def list_by_user(db: Session, user_id: str) -> List[ScheduleRecord]:
        """Return schedules owned by a user."""
        return (
            db.query(ScheduleRecord)
            .filter(ScheduleRecord.user_id == user_id)
            .order_by(ScheduleRecord.created_at)
            .all()
        )

    @staticmethod
    def count_by_user(db: Session, user_id: str) -> int:
        """Count schedules owned by a user."""
        require_active_session(db)
        return (
            db.query(func.count(ScheduleRecord.id))
            .filter(ScheduleRecord.user_id == user_id)
            .scalar()
            or 0
        )

    @staticmethod
    def update(db: Session, schedule_id: str, fields: Dict[str, Any]) -> Optional[ScheduleRecord]:
        """Apply field updates to a schedule. Returns None when it does not exist."""
        require_active_session(db)
        record = db.query(ScheduleRecord).filter(ScheduleRecord.id == schedule_id).first()
        if not record:
            return None
        for key, value in fields.items():
            setattr(record, key, value)
        db.commit()
        safe_refresh(db, record)
        return record

    @staticmethod
    def delete(db: Session, schedule_id: str) -> bool:
        """Delete a schedule row (its events are handled by the lifecycle manager)."""
        require_active_session(db)
        record = db.query(ScheduleRecord).filter(ScheduleRecord.id == schedule_id).first()
        if not record:
            return False
        db.delete(record)
        db.commit()
        return True


class EventRepository:
    """Repository for event records."""

    @staticmethod
    def create(
        db: Session,
        event_id: str,
        schedule_id: Optional[str],
        message_id: Optional[str],
        plan_start: int,
        user_id: Optional[str] = None,
    ) -> EventRecord:
        """Insert a new pending, unscheduled event."""
        require_active_session(db)
        record = EventRecord(
            id=event_id,
            schedule_id=schedule_id,
            message_id=message_id,
            user_id=user_id,
            plan_start=plan_start,
            status="pending",
            scheduled=False,
        )
        db.add(record)
        db.commit()
        safe_refresh(db, record)
        return record

    @staticmethod
    def get_by_id(db: Session, event_id: str) -> Optional[EventRecord]:
        """Return an event by id."""
        return db.query(EventRecord).filter(EventRecord.id == event_id).first()

    @staticmethod
    def list_by_schedule(db: Session, schedule_id: str) -> List[EventRecord]:
        """Return events of a schedule, oldest occurrence first."""
        return (
            db.query(EventRecord)
            .filter(EventRecord.schedule_id == schedule_id)
            .order_by(EventRecord.plan_start)
            .all()
        )

    @staticmethod
    def list_due(db: Session, now: int) -> List[EventRecord]:
        """Return unclaimed pending events whose plan_start is at or before now."""
        return (
            db.query(EventRecord)
            .filter(
                EventRecord.scheduled.is_(False),
                EventRecord.status == "pending",
                EventRecord.plan_start <= now,
            )
            .order_by(EventRecord.plan_start)
            .all()
        )

    @staticmethod
    def claim(db: Session, event_id: str, now: int) -> bool:
        """
        Atomically claim an event.

        The WHERE clause is evaluated against the row at write time, so of two
        concurrent claimants only one sees an affected row.
        """
        require_active_session(db)
        affected = (
            db.query(EventRecord)
            .filter(
                EventRecord.id == event_id,
                EventRecord.scheduled.is_(False),
                EventRecord.status == "pending",
            )
            .update(
                {"scheduled": True, "status": "in_progress", "start": now},
                synchronize_session=False,
            )
        )
        db.commit()
        return affected == 1

    @staticmethod
    def finish(db: Session, event_id: str, status: str, end: int) -> bool:
        """Record the terminal status of a claimed event."""
        require_active_session(db)
        affected = (
            db.query(EventRecord)
            .filter(EventRecord.id == event_id, EventRecord.status == "in_progress")
            .update({"status": status, "end": end}, synchronize_session=False)
        )
        db.commit()
        return affected == 1

    @staticmethod
    def delete_by_schedule(db: Session, schedule_id: str, only_unscheduled: bool = False) -> int:
        """Delete events of a schedule. Returns number deleted."""
        require_active_session(db)
        q = db.query(EventRecord).filter(EventRecord.schedule_id == schedule_id)
        if only_unscheduled:
            q = q.filter(EventRecord.scheduled.is_(False))
        deleted = q.delete(synchronize_session=False)
        db.commit()
        return deleted or 0

    @staticmethod
    def latest_claimed_plan_start(db: Session, schedule_id: str) -> Optional[int]:
        """Return the plan_start of the most recent claimed event of a schedule."""
        return (
            db.query(func.max(EventRecord.plan_start))
            .filter(
                EventRecord.schedule_id == schedule_id,
                EventRecord.scheduled.is_(True),
            )
            .scalar()
        )
