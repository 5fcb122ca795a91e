# barbershop/scheduling/policy.py
"""Availability policy: which parts of a barber's day can be booked.

Shop hours, shop closures, barber absences and barber working hours are
loaded once per (barber, date) into a ``DaySchedule``; everything else in this
module is a pure function of that snapshot.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from ..core import TimeRange
from ..errors import ErrorCode
from ..models import BarberAbsence, ShopClosure, ShopHours, WorkingHours
from .grid import generate_time_slots


def is_full_day(window) -> bool:
    return not window.start_time or not window.end_time


def window_range(window) -> TimeRange:
    return TimeRange.from_times(window.start_time, window.end_time)


def break_range(hours) -> Optional[TimeRange]:
    if hours is not None and hours.break_start and hours.break_end:
        return TimeRange.from_times(hours.break_start, hours.break_end)
    return None


@dataclass
class DaySchedule:
    day: date
    shop_hours: Optional[ShopHours]
    working_hours: Optional[WorkingHours]
    closures: List[ShopClosure] = field(default_factory=list)
    absences: List[BarberAbsence] = field(default_factory=list)

    @property
    def shop_range(self) -> Optional[TimeRange]:
        sh = self.shop_hours
        if sh is None or not sh.is_open or not sh.start_time or not sh.end_time:
            return None
        return TimeRange.from_times(sh.start_time, sh.end_time)

    @property
    def working_range(self) -> Optional[TimeRange]:
        if self.working_hours is None:
            return None
        return TimeRange.from_times(self.working_hours.start_time, self.working_hours.end_time)

    @property
    def closure_ranges(self) -> List[TimeRange]:
        return [window_range(c) for c in self.closures if not is_full_day(c)]

    @property
    def absence_ranges(self) -> List[TimeRange]:
        return [window_range(a) for a in self.absences if not is_full_day(a)]


def load_day_schedule(session: Session, barber_id: int, day: date) -> DaySchedule:
    weekday = day.weekday()
    shop_hours = session.get(ShopHours, weekday)
    closures = session.exec(select(ShopClosure).where(ShopClosure.date == day)).all()
    absences = session.exec(
        select(BarberAbsence)
        .where(BarberAbsence.barber_id == barber_id)
        .where(BarberAbsence.date == day)
    ).all()
    working_hours = session.exec(
        select(WorkingHours)
        .where(WorkingHours.barber_id == barber_id)
        .where(WorkingHours.day_of_week == weekday)
    ).first()
    return DaySchedule(
        day=day,
        shop_hours=shop_hours,
        working_hours=working_hours,
        closures=list(closures),
        absences=list(absences),
    )


def day_block_reason(schedule: DaySchedule) -> Optional[ErrorCode]:
    """Why nothing can be booked that day, or None when some of it can."""
    if schedule.shop_range is None:
        return ErrorCode.SHOP_CLOSED
    if any(is_full_day(c) for c in schedule.closures):
        return ErrorCode.SHOP_CLOSED
    if any(is_full_day(a) for a in schedule.absences):
        return ErrorCode.BARBER_UNAVAILABLE
    if schedule.working_range is None:
        return ErrorCode.BARBER_UNAVAILABLE
    if effective_window(schedule) is None:
        return ErrorCode.BARBER_UNAVAILABLE
    return None


def effective_window(schedule: DaySchedule) -> Optional[TimeRange]:
    """Shop hours intersected with the barber's working hours."""
    shop, working = schedule.shop_range, schedule.working_range
    if shop is None or working is None:
        return None
    return shop.intersection(working)


def blocked_ranges(schedule: DaySchedule) -> List[TimeRange]:
    ranges = schedule.closure_ranges + schedule.absence_ranges
    for hours in (schedule.shop_hours, schedule.working_hours):
        br = break_range(hours)
        if br is not None:
            ranges.append(br)
    return ranges


def working_hours_error(schedule: DaySchedule, start_time: str, duration: int) -> Optional[ErrorCode]:
    """BARBER_UNAVAILABLE outside working hours, SLOT_UNAVAILABLE off the grid."""
    wh = schedule.working_hours
    if wh is None:
        return ErrorCode.BARBER_UNAVAILABLE
    slot = TimeRange.for_slot(start_time, duration)
    if not slot.is_within(schedule.working_range):
        return ErrorCode.BARBER_UNAVAILABLE
    grid = generate_time_slots(wh.start_time, wh.end_time, duration, wh.break_start, wh.break_end)
    if start_time not in grid:
        return ErrorCode.SLOT_UNAVAILABLE
    return None


def shop_slot_error(schedule: DaySchedule, start_time: str, duration: int) -> Optional[ErrorCode]:
    shop = schedule.shop_range
    if shop is None:
        return ErrorCode.SHOP_CLOSED
    slot = TimeRange.for_slot(start_time, duration)
    if not slot.is_within(shop):
        return ErrorCode.SHOP_CLOSED
    shop_break = break_range(schedule.shop_hours)
    if shop_break is not None and slot.overlaps(shop_break):
        return ErrorCode.SHOP_CLOSED
    if any(is_full_day(c) for c in schedule.closures):
        return ErrorCode.SHOP_CLOSED
    if any(slot.overlaps(r) for r in schedule.closure_ranges):
        return ErrorCode.SHOP_CLOSED
    return None


def absence_slot_error(schedule: DaySchedule, start_time: str, duration: int) -> Optional[ErrorCode]:
    if any(is_full_day(a) for a in schedule.absences):
        return ErrorCode.BARBER_UNAVAILABLE
    slot = TimeRange.for_slot(start_time, duration)
    if any(slot.overlaps(r) for r in schedule.absence_ranges):
        return ErrorCode.BARBER_UNAVAILABLE
    return None


def slot_booking_error(schedule: DaySchedule, start_time: str, duration: int) -> Optional[ErrorCode]:
    """First rule a requested booking breaks: working hours/grid, then shop, then absences."""
    return (
        working_hours_error(schedule, start_time, duration)
        or shop_slot_error(schedule, start_time, duration)
        or absence_slot_error(schedule, start_time, duration)
    )
