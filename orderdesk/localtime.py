"""
Local-time resolution for restaurant time zones.

Timestamps are stored in UTC. Calendar grouping happens in the restaurant's
own zone, never in the host's.
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple

import pytz


class LocalParts(NamedTuple):
    """Calendar components of an instant in a restaurant's zone"""
    year: int
    month: int
    day: int
    hour: int

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(pytz.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


class LocalTimeResolver:
    """Resolves UTC instants into local calendar parts for an IANA zone"""

    def __init__(self):
        self._zones = {}

    def zone(self, iana_zone: str):
        tz = self._zones.get(iana_zone)
        if tz is None:
            tz = pytz.timezone(iana_zone)
            self._zones[iana_zone] = tz
        return tz

    def localize(self, utc_timestamp: datetime, iana_zone: str) -> datetime:
        return ensure_utc(utc_timestamp).astimezone(self.zone(iana_zone))

    def resolve(self, utc_timestamp: datetime, iana_zone: str) -> LocalParts:
        local = self.localize(utc_timestamp, iana_zone)
        return LocalParts(local.year, local.month, local.day, local.hour)

    def local_midnight_utc(self, day: date, iana_zone: str) -> datetime:
        """UTC instant at which local `day` begins"""
        tz = self.zone(iana_zone)
        naive = datetime(day.year, day.month, day.day)
        try:
            local = tz.localize(naive, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            local = tz.localize(naive, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            # zones that spring forward at midnight start the day at 01:00
            local = tz.localize(naive + timedelta(hours=1))
        return local.astimezone(pytz.utc)

    def today(self, iana_zone: str, now: datetime = None) -> date:
        return self.localize(now or utcnow(), iana_zone).date()


resolver = LocalTimeResolver()
