"""
Date and time helpers for slot arithmetic.

Slot maths runs on minutes since midnight; persistence uses
``datetime.time``. Studio-local "now" is derived from the configured
timezone so the H-3 rule counts calendar days where the studio is.
"""

from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional, Union

import pytz
from dateutil import parser

from studio_booking.config.settings import settings

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class DateTimeHelper:
    """Date and time manipulation utilities"""

    @staticmethod
    def studio_now(timezone: Optional[str] = None) -> datetime:
        """Current naive wall-clock time at the studio."""
        tz_obj = pytz.timezone(timezone or settings.booking.STUDIO_TIMEZONE)
        return datetime.now(tz_obj).replace(tzinfo=None)

    @staticmethod
    def studio_today(timezone: Optional[str] = None) -> date:
        return DateTimeHelper.studio_now(timezone).date()

    @staticmethod
    def utc_now() -> datetime:
        """Naive UTC timestamp for audit columns."""
        return datetime.now(dt_timezone.utc).replace(tzinfo=None)

    @staticmethod
    def parse_time(value: Union[str, time]) -> time:
        """Parse ``HH:MM`` / ``HH:MM:SS`` (or anything dateutil accepts) into a time."""
        if isinstance(value, time):
            return value
        text = value.strip()
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                return datetime.strptime(text, fmt).time()
            except ValueError:
                continue
        try:
            return parser.parse(text).time()
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Unable to parse time string: {value}") from e

    @staticmethod
    def format_time(value: time) -> str:
        return value.strftime("%H:%M")

    @staticmethod
    def time_to_minutes(value: Union[str, time]) -> int:
        t = DateTimeHelper.parse_time(value)
        return t.hour * 60 + t.minute

    @staticmethod
    def minutes_to_time(minutes: int) -> time:
        if not 0 <= minutes < MINUTES_PER_DAY:
            raise ValueError(f"Minutes out of range for a single day: {minutes}")
        return time(minutes // 60, minutes % 60)

    @staticmethod
    def add_minutes(value: time, minutes: int) -> time:
        return DateTimeHelper.minutes_to_time(DateTimeHelper.time_to_minutes(value) + minutes)

    @staticmethod
    def duration_minutes(start: time, end: time) -> int:
        return DateTimeHelper.time_to_minutes(end) - DateTimeHelper.time_to_minutes(start)

    @staticmethod
    def weekday_name(day: date) -> str:
        return WEEKDAY_NAMES[day.weekday()]

    @staticmethod
    def combine(day: date, value: time) -> datetime:
        return datetime.combine(day, value)

    @staticmethod
    def days_between(start: date, end: date) -> int:
        """Whole calendar days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
        return (end - start).days

    @staticmethod
    def add_days(day: date, days: int) -> date:
        return day + timedelta(days=days)


__all__ = ["DateTimeHelper", "WEEKDAY_NAMES", "MINUTES_PER_DAY"]
