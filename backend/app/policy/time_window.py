"""Business-hours window for high-value approvals.

Times are Unix-epoch based and evaluated in UTC with integer arithmetic:

    days    = secs // 86400
    weekday = (days + 4) % 7          # 0 = Monday .. 6 = Sunday
    hour    = (secs % 86400) // 3600

Weekday indexes 5 and 6 (Saturday, Sunday) are closed. Hours are open in
[BUSINESS_HOURS_START, BUSINESS_HOURS_END).
"""
import time
from typing import NamedTuple

from app.config import settings

NANOS_PER_SECOND = 1_000_000_000
SECONDS_PER_DAY = 86_400
SECONDS_PER_HOUR = 3_600

_DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class UtcMoment(NamedTuple):
    weekday: int  # 0 = Monday
    hour: int

    @property
    def day_name(self) -> str:
        return _DAY_NAMES[self.weekday]

    @property
    def is_weekend(self) -> bool:
        return self.weekday >= 5


def now_ns() -> int:
    """Default clock: nanoseconds since the Unix epoch."""
    return time.time_ns()


def utc_moment(epoch_ns: int) -> UtcMoment:
    secs = epoch_ns // NANOS_PER_SECOND
    days = secs // SECONDS_PER_DAY
    weekday = (days + 4) % 7
    hour = (secs % SECONDS_PER_DAY) // SECONDS_PER_HOUR
    return UtcMoment(weekday=weekday, hour=hour)


def within_business_hours(moment: UtcMoment) -> bool:
    if moment.is_weekend:
        return False
    return settings.BUSINESS_HOURS_START <= moment.hour < settings.BUSINESS_HOURS_END
