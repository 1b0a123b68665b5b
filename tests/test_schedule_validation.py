"""
Unit tests for schedule validation rules.
"""
import pytest
from eventide.core.schedule.validation import (
    ScheduleNotFoundError,
    ScheduleValidationError,
    validate_cron_expression,
    validate_schedule_spec,
    validate_schedules_per_user,
    validate_window,
)


def test_cron_must_parse():
    validate_cron_expression("5 * * * *")
    validate_cron_expression("0 8 * * 1-5")
    with pytest.raises(ScheduleValidationError, match="invalid cron"):
        validate_cron_expression("61 * * * *")
    with pytest.raises(ScheduleValidationError, match="5-field"):
        validate_cron_expression("1 2 3")
    with pytest.raises(ScheduleValidationError, match="required"):
        validate_cron_expression("")


def test_cron_every_minute_allowed_by_default():
    validate_cron_expression("* * * * *")


def test_cron_every_minute_rejected_when_disallowed():
    with pytest.raises(ScheduleValidationError, match="every minute"):
        validate_cron_expression("* * * * *", allow_every_minute=False)
    validate_cron_expression("0 * * * *", allow_every_minute=False)


def test_cron_minute_wildcard_within_hour_rejected_when_disallowed():
    with pytest.raises(ScheduleValidationError, match="every minute of each matching hour"):
        validate_cron_expression("* 3 * * *", allow_every_minute=False)
    validate_cron_expression("*/15 3 * * *", allow_every_minute=False)


def test_cron_every_minute_allowed_with_allowlist():
    validate_cron_expression(
        "*   * * * *",
        allow_every_minute=False,
        allowlist_expressions=["* * * * *"],
    )


def test_window_bounds():
    validate_window(0, 0)
    validate_window(100, 200)
    with pytest.raises(ScheduleValidationError, match="start_at must be <= end_at"):
        validate_window(200, 100)
    with pytest.raises(ScheduleValidationError, match="integer"):
        validate_window("100", 200)
    with pytest.raises(ScheduleValidationError, match="integer"):
        validate_window(100, None)
    with pytest.raises(ScheduleValidationError, match="integer"):
        validate_window(True, 200)
    with pytest.raises(ScheduleValidationError, match=">= 0"):
        validate_window(-5, 200)


def test_schedules_per_user_limit():
    validate_schedules_per_user(0, 20)
    validate_schedules_per_user(19, 20)
    with pytest.raises(ScheduleValidationError, match="max"):
        validate_schedules_per_user(20, 20)


def test_schedule_spec():
    validate_schedule_spec({"cron": "*/5 * * * *", "start_at": 0, "end_at": 600})
    with pytest.raises(ScheduleValidationError, match="object"):
        validate_schedule_spec(["cron"])
    with pytest.raises(ScheduleValidationError, match="cron is required"):
        validate_schedule_spec({"start_at": 0, "end_at": 600})


def test_not_found_is_a_validation_error():
    assert issubclass(ScheduleNotFoundError, ScheduleValidationError)
