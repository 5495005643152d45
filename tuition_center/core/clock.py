# tuition_center/core/clock.py
"""Wall-clock helpers for the scheduling time zone.

Instants are stored as naive timestamps in ``settings.schedule_timezone``,
so calendar-day boundaries and "now" must be computed in that zone too.
"""
from datetime import datetime, time
from typing import Tuple
from zoneinfo import ZoneInfo

from .config import settings


def schedule_zone() -> ZoneInfo:
    return ZoneInfo(settings.schedule_timezone)


def local_now() -> datetime:
    """Current wall-clock time in the scheduling zone, without tzinfo"""
    return datetime.now(schedule_zone()).replace(tzinfo=None)


def to_local_naive(value: datetime) -> datetime:
    """Normalise an incoming datetime to a naive scheduling-zone timestamp"""
    if value.tzinfo is None:
        return value
    return value.astimezone(schedule_zone()).replace(tzinfo=None)


def day_bounds(value: datetime) -> Tuple[datetime, datetime]:
    """First and last representable instant of ``value``'s calendar day"""
    start = datetime.combine(value.date(), time.min)
    return start, datetime.combine(value.date(), time.max)


def add_one_month(value: datetime) -> datetime:
    """Same day next month, clamped to the last day of a shorter month"""
    year = value.year + (1 if value.month == 12 else 0)
    month = 1 if value.month == 12 else value.month + 1
    day = value.day
    while True:
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1

