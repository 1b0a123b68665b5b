"""
HTTP endpoints for schedules.

- /schedules: CRUD for the user in header X-User-Id
- /events/schedule: change trigger on the schedule table (INSERT/UPDATE/DELETE)
- /events/schedule-cron: one processing pass, for an external timer
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from eventide.core.config import settings
from eventide.core.schedule.processor import process_scheduled_events
from eventide.core.schedule.service import ScheduleService
from eventide.core.schedule.validation import ScheduleNotFoundError, ScheduleValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["schedules"])
events_router = APIRouter(prefix="/events", tags=["schedule-events"])

_schedule_service: Optional[ScheduleService] = None


def get_schedule_service() -> ScheduleService:
    global _schedule_service
    if _schedule_service is None:
        _schedule_service = ScheduleService()
    return _schedule_service


def _user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=400, detail="X-User-Id header is required")
    return x_user_id.strip()


def _raise_http(e: ScheduleValidationError):
    if isinstance(e, ScheduleNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=422, detail=str(e))


def _verify_event_secret(x_event_secret: Optional[str] = Header(None, alias="X-Event-Secret")) -> None:
    expected = settings.event_secret
    if not expected:
        return
    if not x_event_secret or not secrets.compare_digest(x_event_secret, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("")
def schedule_add(
    body: Dict[str, Any],
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    """Create a schedule. Body: cron, start_at, end_at, message_id?."""
    try:
        return service.add_schedule(user_id, body)
    except ScheduleValidationError as e:
        _raise_http(e)


@router.get("")
def schedule_list(
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    return service.list_schedules(user_id)


@router.get("/{schedule_id}")
def schedule_get(
    schedule_id: str,
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    try:
        return service.get_schedule(schedule_id, user_id)
    except ScheduleValidationError as e:
        _raise_http(e)


@router.patch("/{schedule_id}")
def schedule_update(
    schedule_id: str,
    body: Dict[str, Any],
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    """Update a schedule. Body: any of cron, start_at, end_at, message_id."""
    try:
        return service.update_schedule(schedule_id, user_id, body)
    except ScheduleValidationError as e:
        _raise_http(e)


@router.delete("/{schedule_id}")
def schedule_remove(
    schedule_id: str,
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    try:
        return service.remove_schedule(schedule_id, user_id)
    except ScheduleValidationError as e:
        _raise_http(e)


@router.get("/{schedule_id}/events")
def schedule_events(
    schedule_id: str,
    user_id: str = Depends(_user_id),
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    try:
        return service.list_events(schedule_id, user_id)
    except ScheduleValidationError as e:
        _raise_http(e)


@events_router.post("/schedule", dependencies=[Depends(_verify_event_secret)])
def schedule_change_trigger(
    body: Dict[str, Any],
    service: ScheduleService = Depends(get_schedule_service),
) -> Dict[str, Any]:
    """
    Change trigger for the schedule table.

    Body: {"event": {"op": "INSERT"|"UPDATE"|"DELETE", "data": {"old": ..., "new": ...}},
           "table": {"schema": "public", "name": "schedule"}}
    """
    event = body.get("event") or {}
    table = body.get("table") or {}
    op = event.get("op")
    table_name = f"{table.get('schema', 'public')}.{table.get('name', '')}"
    if table.get("name") != "schedule":
        return {"success": True, "operation": {"type": op, "table": table_name, "processed": False}}
    try:
        result = service.apply_change(op, event.get("data") or {})
    except ScheduleValidationError as e:
        _raise_http(e)
    return {
        "success": True,
        "operation": {"type": result["type"], "table": table_name, "processed": True},
        "event": result["event"],
    }


@events_router.api_route("/schedule-cron", methods=["GET", "POST"])
async def schedule_cron(service: ScheduleService = Depends(get_schedule_service)):
    """Process due events once."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        result = await process_scheduled_events(service.store)
    except Exception as e:
        logger.error("Schedule cron processing error: %s", e, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e), "timestamp": timestamp},
        )
    return {
        "success": True,
        "timestamp": timestamp,
        "message": "Schedule cron processing completed",
        "result": result.model_dump(),
    }
