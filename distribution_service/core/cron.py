"""
Minimal cron expression matching for the in-process scheduler.

Supports "*", "*/N", lists ("1,2,3"), ranges ("1-5") and exact values in the
usual five fields: minute hour day month weekday (0=sunday).
"""
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def parse_cron(schedule: str) -> dict:
    """Parse a five-field cron expression."""
    parts = schedule.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron: {schedule}")
    return {
        "minute": parts[0],
        "hour": parts[1],
        "day": parts[2],
        "month": parts[3],
        "weekday": parts[4],
    }


def matches_cron_field(field: str, value: int) -> bool:
    """Check a single cron field against a value."""
    if field == "*":
        return True

    if field.startswith("*/"):
        interval = int(field[2:])
        return value % interval == 0

    if "," in field:
        return any(matches_cron_field(part, value) for part in field.split(","))

    if "-" in field:
        start, end = field.split("-", 1)
        return int(start) <= value <= int(end)

    return int(field) == value


def should_run(schedule: str, now: datetime) -> bool:
    """True when the schedule fires at the minute of `now`."""
    try:
        cron = parse_cron(schedule)
    except ValueError as e:
        logger.error(f"Error parsing cron {schedule}: {e}")
        return False

    if not matches_cron_field(cron["minute"], now.minute):
        return False

    if not matches_cron_field(cron["hour"], now.hour):
        return False

    if not matches_cron_field(cron["day"], now.day):
        return False

    if not matches_cron_field(cron["month"], now.month):
        return False

    if cron["weekday"] != "*":
        # Python: 0=monday ... 6=sunday; cron: 0=sunday ... 6=saturday
        cron_weekday = (now.weekday() + 1) % 7
        sunday_alias = cron_weekday == 0 and matches_cron_field(cron["weekday"], 7)
        if not (matches_cron_field(cron["weekday"], cron_weekday) or sunday_alias):
            return False

    return True
