"""
Hard validation rules for schedules.

- cron must be a parseable 5-field expression
- reject cron expr whose minute field is `*` (every minute) unless allowed
- start_at <= end_at, both non-negative epoch seconds
- max N schedules per user (caller passes current count; validation raises if over limit)
"""
from typing import Any, Dict, List, Optional

from eventide.core.schedule.cron import CronExpressionError, parse_cron_expression


class ScheduleValidationError(ValueError):
    """Raised when schedule validation fails."""
    pass


class ScheduleNotFoundError(ScheduleValidationError):
    """Raised when a schedule does not exist or is not owned by the caller."""
    pass


def _cron_runs_every_minute(expr: str) -> bool:
    """True if the minute field is `*`, so the expression fires every minute of each matching hour."""
    parts = expr.strip().split()
    if len(parts) != 5:
        return False
    return parts[0].strip() == "*"


def validate_cron_expression(
    expr: str,
    allow_every_minute: bool = True,
    allowlist_expressions: Optional[List[str]] = None,
) -> None:
    """
    Reject malformed expressions, and every-minute ones unless allowed.

    allowlist_expressions: normalized expressions (e.g. "* * * * *") accepted even
    when allow_every_minute is False.
    """
    if not expr or not str(expr).strip():
        raise ScheduleValidationError("cron is required")
    try:
        parse_cron_expression(expr)
    except CronExpressionError as e:
        raise ScheduleValidationError(f"invalid cron expression: {e}") from e

    if allow_every_minute or not _cron_runs_every_minute(expr):
        return
    normalized = " ".join(expr.split())
    if allowlist_expressions and normalized in allowlist_expressions:
        return
    raise ScheduleValidationError(
        "cron minute field is '*' so it runs every minute of each matching hour; not allowed"
    )


def validate_window(start_at: Any, end_at: Any) -> None:
    """start_at and end_at are integer epoch seconds with start_at <= end_at."""
    for name, value in (("start_at", start_at), ("end_at", end_at)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ScheduleValidationError(f"{name} must be an integer epoch timestamp")
        if value < 0:
            raise ScheduleValidationError(f"{name} must be >= 0")
    if start_at > end_at:
        raise ScheduleValidationError("start_at must be <= end_at")


def validate_schedules_per_user(current_count: int, limit: int) -> None:
    """Reject if current_count >= limit (used before adding a new schedule)."""
    if current_count >= limit:
        raise ScheduleValidationError(
            f"max {limit} schedules per user; current count is {current_count}"
        )


def validate_schedule_spec(spec: Dict[str, Any], allow_every_minute: bool = True) -> None:
    """Validate a full schedule body: cron plus window."""
    if not isinstance(spec, dict):
        raise ScheduleValidationError("schedule body must be an object")
    validate_cron_expression(spec.get("cron") or "", allow_every_minute=allow_every_minute)
    validate_window(spec.get("start_at"), spec.get("end_at"))
