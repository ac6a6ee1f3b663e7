"""
Time window helpers.

Trip times are stored as same-day wall clock text ("8:30 AM") and every
comparison is made against the current time in Indian Standard Time, whatever
the server locale. Services receive a ``Clock`` so tests can pin "now".
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from campusbus.config import settings


def minutes_since_midnight(time_text: Optional[str]) -> int:
    """Convert "H:MM AM|PM" into minutes past midnight.

    Anything that cannot be parsed yields 0, so a trip with a broken time
    is treated as already departed.
    """
    if not time_text:
        return 0
    try:
        clock_part, meridiem = time_text.split()
        hour_text, minute_text = clock_part.split(":")
        hours, minutes = int(hour_text), int(minute_text)
    except (ValueError, AttributeError):
        return 0

    meridiem = meridiem.upper()
    if meridiem == "PM" and hours != 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


class Clock:
    """Current time in the service timezone"""

    def __init__(self, utc_offset_minutes: int = None):
        if utc_offset_minutes is None:
            utc_offset_minutes = settings.UTC_OFFSET_MINUTES
        self.tz = timezone(timedelta(minutes=utc_offset_minutes))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def minutes_now(self) -> int:
        current = self.now()
        return current.hour * 60 + current.minute

    def minutes_until(self, time_text: Optional[str]) -> int:
        """Minutes from now until a same-day departure (negative once departed)"""
        return minutes_since_midnight(time_text) - self.minutes_now()

    def is_upcoming(self, time_text: Optional[str]) -> bool:
        return self.minutes_until(time_text) > 0


class FixedClock(Clock):
    """Clock pinned to a given wall time, used by tests and scripts"""

    def __init__(self, hour: int = 0, minute: int = 0, utc_offset_minutes: int = None):
        super().__init__(utc_offset_minutes)
        self.set(hour, minute)

    def set(self, hour: int, minute: int):
        today = datetime.now(self.tz).date()
        self._now = datetime(today.year, today.month, today.day, hour, minute, tzinfo=self.tz)

    def set_minutes(self, minutes_of_day: int):
        self.set(minutes_of_day // 60, minutes_of_day % 60)

    def now(self) -> datetime:
        return self._now


system_clock = Clock()

def get_clock() -> Clock:
    return system_clock
