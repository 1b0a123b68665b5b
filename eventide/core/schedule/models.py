"""
Schedule and event models.

Contract:
- Schedule: cron (5-field, UTC) + inclusive epoch-second window [start_at, end_at]
- Event: one occurrence; status pending -> in_progress -> completed | failed
- scheduled=False marks the single unclaimed frontier event of a schedule
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class EventStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ScheduleChange(str, Enum):
    """Kind of change observed on a schedule row."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Schedule(BaseModel):
    """Recurring directive owning zero or more events."""
    id: str
    message_id: Optional[str] = None
    cron: str
    start_at: int
    end_at: int
    user_id: Optional[str] = None

    model_config = {"extra": "ignore", "from_attributes": True}

    @model_validator(mode="after")
    def check_window(self):
        if self.start_at > self.end_at:
            raise ValueError("start_at must be <= end_at")
        return self


class Event(BaseModel):
    """Concrete occurrence materialized from a schedule."""
    id: str
    schedule_id: Optional[str] = None
    message_id: Optional[str] = None
    user_id: Optional[str] = None
    plan_start: Optional[int] = None
    start: Optional[int] = None
    end: Optional[int] = None
    status: EventStatus = EventStatus.PENDING
    scheduled: bool = False

    model_config = {"extra": "ignore", "from_attributes": True}


class ProcessResult(BaseModel):
    """Counters for one processing pass."""
    candidates: int = 0
    claimed: int = 0
    skipped: int = 0
    completed: int = 0
    failed: int = 0
    materialized: int = 0
    errors: int = Field(0, description="Candidates abandoned because of a store error")
