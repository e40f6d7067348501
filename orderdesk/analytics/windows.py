"""Analytics date windows"""

import calendar
import enum
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional, Tuple

from orderdesk.errors import InvalidDateRange
from orderdesk.localtime import LocalTimeResolver, resolver as default_resolver


class DateRange(str, enum.Enum):
    """Preset analytics ranges"""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class AnalyticsWindow(NamedTuple):
    """Inclusive range of local calendar days"""
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def resolve_window(
    range_mode: DateRange,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> AnalyticsWindow:
    """
    Turn a range preset into local calendar days.

    week is the ISO week (Monday to Sunday) containing `today`, month and year
    are the calendar month and year, custom takes `start`..`end` inclusive.
    """
    range_mode = DateRange(range_mode)

    if range_mode == DateRange.CUSTOM:
        if start is None or end is None:
            raise InvalidDateRange("A custom range needs both a start and an end date")
        if start > end:
            raise InvalidDateRange("Range start must not be after its end")
        return AnalyticsWindow(start, end)

    if range_mode == DateRange.WEEK:
        monday = today - timedelta(days=today.weekday())
        return AnalyticsWindow(monday, monday + timedelta(days=6))

    if range_mode == DateRange.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return AnalyticsWindow(today.replace(day=1), today.replace(day=last_day))

    return AnalyticsWindow(date(today.year, 1, 1), date(today.year, 12, 31))


def utc_bounds(
    window: AnalyticsWindow,
    iana_zone: str,
    resolver: LocalTimeResolver = default_resolver,
) -> Tuple[datetime, datetime]:
    """UTC instants [local midnight of start, local midnight after end)"""
    return (
        resolver.local_midnight_utc(window.start, iana_zone),
        resolver.local_midnight_utc(window.end + timedelta(days=1), iana_zone),
    )
