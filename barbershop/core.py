# barbershop/core.py

import re
from datetime import date, datetime, time, timedelta
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo

from .config import SHOP_TIMEZONE

SHOP_TZ = ZoneInfo(SHOP_TIMEZONE)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_time(value: str) -> bool:
    return bool(_TIME_RE.match(value or ""))


def parse_time(value: str) -> int:
    """'HH:MM' -> minutes since midnight"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    # Not clamped to 24h; appointments are bounded by working hours.
    return format_minutes(parse_time(value) + minutes)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # Half-open intervals [a_start, a_end) and [b_start, b_end)
    return a_start < b_end and b_start < a_end


class TimeRange(NamedTuple):
    start: int
    end: int

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "TimeRange":
        return cls(parse_time(start_time), parse_time(end_time))

    @classmethod
    def for_slot(cls, start_time: str, duration: int) -> "TimeRange":
        start = parse_time(start_time)
        return cls(start, start + duration)

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def is_within(self, other: "TimeRange") -> bool:
        return self.start >= other.start and self.end <= other.end

    def intersection(self, other: "TimeRange") -> Optional["TimeRange"]:
        start, end = max(self.start, other.start), min(self.end, other.end)
        if start >= end:
            return None
        return TimeRange(start, end)


def normalize_phone(value: str) -> str:
    """Digits only; guest clients are keyed by this."""
    return re.sub(r"\D", "", value or "")


# ---- shop clock ----

def shop_now() -> datetime:
    return datetime.now(SHOP_TZ)


def shop_datetime(day: date, hhmm: str) -> datetime:
    minutes = parse_time(hhmm)
    # "24:00"-style ends roll over to the next day
    return datetime.combine(day, time(0, 0), tzinfo=SHOP_TZ) + timedelta(minutes=minutes)


def local_today(now: datetime) -> date:
    return now.astimezone(SHOP_TZ).date()


def minutes_until(now: datetime, day: date, hhmm: str) -> float:
    return (shop_datetime(day, hhmm) - now).total_seconds() / 60


def is_in_past(now: datetime, day: date, hhmm: str) -> bool:
    return shop_datetime(day, hhmm) < now
