"""
SQLAlchemy models for the Eventide database.

Defines the schema for schedules and the events materialized from them.
Times are stored as integer epoch seconds (UTC).
"""
from sqlalchemy import Column, String, Boolean, BigInteger, DateTime, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ScheduleRecord(Base):
    """A recurring directive: cron expression plus an inclusive activation window."""
    __tablename__ = "schedule"

    id = Column(String(64), primary_key=True, index=True)
    message_id = Column(String(64), nullable=True)
    cron = Column(String(255), nullable=False)
    start_at = Column(BigInteger, nullable=False)
    end_at = Column(BigInteger, nullable=False)
    user_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class EventRecord(Base):
    """One concrete occurrence of a schedule."""
    __tablename__ = "events"

    id = Column(String(64), primary_key=True, index=True)
    # Not a foreign key: schedule rows are deleted before the change is reported
    schedule_id = Column(String(64), nullable=True, index=True)
    message_id = Column(String(64), nullable=True)
    user_id = Column(String(64), nullable=True)
    plan_start = Column(BigInteger, nullable=True)
    start = Column(BigInteger, nullable=True)
    end = Column(BigInteger, nullable=True)
    status = Column(String(32), nullable=False, default="pending")
    scheduled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_events_due", "scheduled", "status", "plan_start"),
        Index("idx_events_schedule_scheduled", "schedule_id", "scheduled"),
    )
