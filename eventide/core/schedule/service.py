"""
Schedule business logic: add/update/remove/list with validation, driving the lifecycle manager.
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from eventide.core.config import settings
from eventide.core.schedule.lifecycle import on_schedule_change
from eventide.core.schedule.models import Schedule, ScheduleChange
from eventide.core.schedule.store import SqlEventStore
from eventide.core.schedule.validation import (
    ScheduleNotFoundError,
    ScheduleValidationError,
    validate_schedule_spec,
    validate_schedules_per_user,
)

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("cron", "start_at", "end_at", "message_id")


class ScheduleService:
    """Service for managing schedules and inspecting their events."""

    def __init__(self, store: Optional[SqlEventStore] = None):
        self._store = store or SqlEventStore()

    @property
    def store(self) -> SqlEventStore:
        return self._store

    def _owned(self, schedule_id: str, user_id: str) -> Schedule:
        schedule = self._store.get_schedule(schedule_id)
        if schedule is None or schedule.user_id != str(user_id):
            raise ScheduleNotFoundError("Schedule not found or not owned by user")
        return schedule

    def add_schedule(self, user_id: str, spec: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a schedule and materialize its first event.
        spec: cron, start_at, end_at, optional message_id.
        Returns: {"scheduleId": "...", "schedule": {...}, "event": {...} | None}
        """
        user_id = str(user_id)
        validate_schedule_spec(spec, allow_every_minute=settings.schedule_allow_every_minute)
        validate_schedules_per_user(
            self._store.count_schedules(user_id),
            settings.schedules_per_user_limit,
        )
        schedule = self._store.insert_schedule(
            cron=" ".join(spec["cron"].split()),
            start_at=spec["start_at"],
            end_at=spec["end_at"],
            message_id=spec.get("message_id"),
            user_id=user_id,
        )
        event = on_schedule_change(self._store, schedule, ScheduleChange.INSERT)
        logger.info("Created schedule %s for user %s", schedule.id, user_id)
        return {
            "scheduleId": schedule.id,
            "schedule": schedule.model_dump(mode="json"),
            "event": event.model_dump(mode="json") if event else None,
        }

    def update_schedule(self, schedule_id: str, user_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Update cron/window/message of a schedule and replace its frontier event."""
        current = self._owned(schedule_id, user_id)
        fields = {k: v for k, v in patch.items() if k in _UPDATABLE_FIELDS}
        if not fields:
            raise ScheduleValidationError(
                f"nothing to update; expected one of {', '.join(_UPDATABLE_FIELDS)}"
            )
        merged = {**current.model_dump(), **fields}
        validate_schedule_spec(merged, allow_every_minute=settings.schedule_allow_every_minute)
        if "cron" in fields:
            fields["cron"] = " ".join(fields["cron"].split())
        schedule = self._store.update_schedule(schedule_id, fields)
        if schedule is None:
            raise ScheduleNotFoundError("Schedule not found or not owned by user")
        event = on_schedule_change(self._store, schedule, ScheduleChange.UPDATE)
        return {
            "schedule": schedule.model_dump(mode="json"),
            "event": event.model_dump(mode="json") if event else None,
        }

    def remove_schedule(self, schedule_id: str, user_id: str) -> Dict[str, Any]:
        """Delete a schedule and its events. Returns {"success": true}."""
        schedule = self._owned(schedule_id, user_id)
        self._store.delete_schedule(schedule_id)
        on_schedule_change(self._store, schedule, ScheduleChange.DELETE)
        return {"success": True}

    def list_schedules(self, user_id: str) -> Dict[str, Any]:
        """List schedules for user. Returns {"schedules": [...]}."""
        schedules = self._store.list_schedules(str(user_id))
        return {"schedules": [s.model_dump(mode="json") for s in schedules]}

    def get_schedule(self, schedule_id: str, user_id: str) -> Dict[str, Any]:
        return {"schedule": self._owned(schedule_id, user_id).model_dump(mode="json")}

    def list_events(self, schedule_id: str, user_id: str) -> Dict[str, Any]:
        """Events of a schedule, oldest occurrence first. Returns {"events": [...]}."""
        self._owned(schedule_id, user_id)
        events = self._store.list_events(schedule_id)
        return {"events": [e.model_dump(mode="json") for e in events]}

    def apply_change(self, op: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a change reported by an external trigger on the schedule table.

        data: {"old": row | None, "new": row | None}; DELETE reads "old", others "new".
        """
        try:
            change = ScheduleChange(str(op).upper())
        except ValueError:
            raise ScheduleValidationError(f"unsupported operation {op!r}")
        row = data.get("old") if change == ScheduleChange.DELETE else data.get("new")
        if not row:
            raise ScheduleValidationError(f"{change.value} payload has no row data")
        try:
            schedule = Schedule.model_validate(row)
        except ValidationError as e:
            raise ScheduleValidationError(f"invalid schedule row: {e}") from e
        event = on_schedule_change(self._store, schedule, change)
        return {
            "type": change.value,
            "scheduleId": schedule.id,
            "event": event.model_dump(mode="json") if event else None,
        }
