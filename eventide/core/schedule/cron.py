"""
5-field cron evaluation over UTC epoch seconds, backed by croniter.

Fields: minute hour day-of-month month day-of-week. Day-of-week 7 is Sunday,
like 0. When both day fields are restricted a day matches if either does.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from croniter import croniter, CroniterBadCronError, CroniterBadDateError

logger = logging.getLogger(__name__)

# Give up when no occurrence falls within this many years (covers Feb 29 lines)
SEARCH_HORIZON_YEARS = 4


class CronExpressionError(ValueError):
    """Raised when a cron expression cannot be parsed."""
    pass


def parse_cron_expression(expr: str) -> str:
    """
    Check a 5-field cron expression and return it with normalized whitespace.

    Raises CronExpressionError.
    """
    if not isinstance(expr, str):
        raise CronExpressionError("cron expression must be a string")
    parts = expr.split()
    if len(parts) != 5:
        raise CronExpressionError("cron expr must be 5-field: minute hour day month weekday")
    normalized = " ".join(parts)
    try:
        croniter(normalized, datetime(2000, 1, 1, tzinfo=timezone.utc))
    except (CroniterBadCronError, ValueError, TypeError) as e:
        raise CronExpressionError(str(e)) from e
    return normalized


def calculate_next_run(cron_expression: str, after: int) -> Optional[int]:
    """
    Return the first epoch second strictly after `after` matching the expression.

    Returns None when the expression is malformed, when nothing matches within
    SEARCH_HORIZON_YEARS, or when the search leaves the representable date range.
    The result is always a whole minute.
    """
    try:
        expr = parse_cron_expression(cron_expression)
    except CronExpressionError as e:
        logger.debug("Invalid cron expression %r: %s", cron_expression, e)
        return None
    try:
        start = datetime.fromtimestamp(int(after), tz=timezone.utc)
        it = croniter(expr, start, max_years_between_matches=SEARCH_HORIZON_YEARS)
        return int(it.get_next(float))
    except CroniterBadDateError:
        logger.debug("No occurrence of %r within horizon after %s", cron_expression, after)
        return None
    except (OverflowError, ValueError, OSError) as e:
        logger.debug("cron next_run for %r after %s: %s", cron_expression, after, e)
        return None
