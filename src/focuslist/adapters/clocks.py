"""Clock adapters."""

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo


class SystemClock:
    """
    Wall clock in a fixed timezone.

    Implements Clock protocol. With no timezone, uses the host's local zone.
    """

    def __init__(self, tz: tzinfo | str | None = None):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at an instant until advanced. Implements Clock protocol."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta) -> datetime:
        self.instant = self.instant + delta
        return self.instant
