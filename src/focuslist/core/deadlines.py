"""Deadline classification - human labels and urgency tiers. No I/O."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


class Tier(Enum):
    """Presentation urgency of a deadline."""

    CRITICAL = "critical"
    URGENT = "urgent"
    NORMAL = "normal"


@dataclass(frozen=True)
class DeadlineInfo:
    """Label and tier pair shown next to a task."""

    label: str
    tier: Tier


def _local_date(instant: datetime, now: datetime) -> date:
    """Calendar date of an instant in the timezone of now."""
    if instant.tzinfo is not None and now.tzinfo is not None:
        instant = instant.astimezone(now.tzinfo)
    return instant.date()


def whole_hours(deadline: datetime, now: datetime) -> int:
    """Whole hours from now until deadline, truncated toward zero."""
    return int((deadline - now) / HOUR)


def whole_days(deadline: datetime, now: datetime) -> int:
    """Whole days from now until deadline, truncated toward zero."""
    return int((deadline - now) / DAY)


def start_of_day(now: datetime) -> datetime:
    """Local midnight of the day containing now."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_due_today(deadline: datetime, now: datetime | None = None) -> bool:
    """Deadline falls on today's calendar date (not a rolling 24h window)."""
    now = now or datetime.now().astimezone()
    return _local_date(deadline, now) == now.date()


def is_due_tomorrow(deadline: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now().astimezone()
    return _local_date(deadline, now) == now.date() + timedelta(days=1)


def deadline_label(deadline: datetime, now: datetime | None = None) -> str:
    """
    Human-friendly deadline label.

    Examples: "Due in 2 hours", "Due tomorrow", "Overdue by 3 days".
    """
    now = now or datetime.now().astimezone()
    today = is_due_today(deadline, now)

    if deadline < now and not today:
        days_overdue = abs(whole_days(deadline, now))
        if days_overdue == 1:
            return "Overdue by 1 day"
        return f"Overdue by {days_overdue} days"

    if today:
        hours = whole_hours(deadline, now)
        if hours < 0:
            return "Overdue (today)"
        if hours == 0:
            return "Due in less than 1 hour"
        if hours == 1:
            return "Due in 1 hour"
        if hours < 24:
            return f"Due in {hours} hours"

    if is_due_tomorrow(deadline, now):
        return "Due tomorrow"

    days_until = whole_days(deadline, now)
    if days_until <= 7:
        return f"Due in {days_until} days"

    local = deadline.astimezone(now.tzinfo) if deadline.tzinfo and now.tzinfo else deadline
    return f"Due {local.strftime('%b %d, %Y')}"


def deadline_tier(deadline: datetime, now: datetime | None = None) -> Tier:
    """Urgency tier from whole hours remaining. Drives colour only, never ordering."""
    now = now or datetime.now().astimezone()
    hours = whole_hours(deadline, now)
    if hours < 0:
        return Tier.CRITICAL
    if hours <= 24:
        return Tier.URGENT
    return Tier.NORMAL


def classify_deadline(deadline: datetime, now: datetime | None = None) -> DeadlineInfo:
    now = now or datetime.now().astimezone()
    return DeadlineInfo(label=deadline_label(deadline, now), tier=deadline_tier(deadline, now))
