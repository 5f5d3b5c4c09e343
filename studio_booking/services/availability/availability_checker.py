"""
Availability checks.

Pure functions over time windows expressed as minutes since midnight.
Windows are half-open: ``[start, end)``, so touching windows never clash.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from studio_booking.utils.datetime_utils import DateTimeHelper


@dataclass(frozen=True)
class TimeWindow:
    start: int
    end: int
    owner_id: Optional[str] = None
    info: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"Window end must be after start ({self.start} >= {self.end})")

    @classmethod
    def from_times(cls, start, end, owner_id: Optional[str] = None, **info) -> "TimeWindow":
        return cls(
            DateTimeHelper.time_to_minutes(start),
            DateTimeHelper.time_to_minutes(end),
            owner_id,
            info,
        )

    @property
    def label(self) -> str:
        return (
            f"{DateTimeHelper.format_time(DateTimeHelper.minutes_to_time(self.start))} - "
            f"{DateTimeHelper.format_time(DateTimeHelper.minutes_to_time(self.end))}"
        )

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class DayHours:
    """Opening hours of one day."""
    is_open: bool
    open: int = 0
    close: int = 0


@dataclass(frozen=True)
class SlotCandidate:
    start: int
    end: int
    available: bool
    is_past: bool
    is_blocked: bool
    conflict: Optional[TimeWindow] = None


def windows_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap: ``a.start < b.end and a.end > b.start``."""
    return a_start < b_end and a_end > b_start


def find_conflicts(
    candidate: TimeWindow,
    existing: Iterable[TimeWindow],
    exclude_id: Optional[str] = None,
) -> List[TimeWindow]:
    """Existing windows overlapping the candidate, skipping ``exclude_id``."""
    return [
        window
        for window in existing
        if not (exclude_id and window.owner_id == exclude_id)
        and windows_overlap(candidate.start, candidate.end, window.start, window.end)
    ]


def resolve_day_hours(
    operating_hours: Optional[Dict[str, Dict[str, Any]]],
    day: date,
    defaults: Dict[str, Dict[str, Any]],
) -> DayHours:
    """Hours for ``day`` from the studio's weekly table, falling back to defaults per weekday."""
    weekday = DateTimeHelper.weekday_name(day)
    hours = (operating_hours or {}).get(weekday) or defaults.get(weekday)
    if not hours or not hours.get("is_open", True):
        return DayHours(is_open=False)

    open_minutes = DateTimeHelper.time_to_minutes(hours["open"])
    close_minutes = DateTimeHelper.time_to_minutes(hours["close"])
    if close_minutes <= open_minutes:
        return DayHours(is_open=False)
    return DayHours(is_open=True, open=open_minutes, close=close_minutes)


def generate_slots(
    day_hours: DayHours,
    duration_minutes: int,
    interval_minutes: int,
    occupied: Iterable[TimeWindow] = (),
    blocked: Iterable[TimeWindow] = (),
    day: Optional[date] = None,
    now: Optional[datetime] = None,
    exclude_id: Optional[str] = None,
) -> List[SlotCandidate]:
    """
    Slide a window of ``duration_minutes`` across opening hours.

    A slot is available when it overlaps no occupied or blocked window and
    does not start in the past. A closed day yields no slots.
    """
    if not day_hours.is_open or duration_minutes <= 0:
        return []
    if interval_minutes <= 0:
        raise ValueError("Slot interval must be positive")

    occupied = list(occupied)
    blocked = list(blocked)
    slots: List[SlotCandidate] = []

    start = day_hours.open
    while start + duration_minutes <= day_hours.close:
        candidate = TimeWindow(start, start + duration_minutes)
        conflicts = find_conflicts(candidate, occupied, exclude_id)
        is_blocked = bool(find_conflicts(candidate, blocked))
        is_past = False
        if day is not None and now is not None:
            is_past = DateTimeHelper.combine(day, DateTimeHelper.minutes_to_time(start)) < now

        slots.append(
            SlotCandidate(
                start=candidate.start,
                end=candidate.end,
                available=not conflicts and not is_blocked and not is_past,
                is_past=is_past,
                is_blocked=is_blocked,
                conflict=conflicts[0] if conflicts else None,
            )
        )
        start += interval_minutes

    return slots


def addon_window_fits(
    addon_window: TimeWindow,
    primary_window: TimeWindow,
) -> bool:
    """A facility add-on fits when its window lies inside the primary window."""
    return primary_window.contains(addon_window)


__all__ = [
    "TimeWindow",
    "DayHours",
    "SlotCandidate",
    "windows_overlap",
    "find_conflicts",
    "resolve_day_hours",
    "generate_slots",
    "addon_window_fits",
]
