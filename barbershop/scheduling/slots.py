# barbershop/scheduling/slots.py

import logging
from datetime import date, datetime
from typing import List

from sqlmodel import Session, select

from ..core import TimeRange, is_in_past
from ..models import Appointment, Service
from ..schemas import TimeSlot
from .grid import generate_time_slots
from .policy import (
    blocked_ranges,
    break_range,
    day_block_reason,
    effective_window,
    load_day_schedule,
)
from .status import AppointmentStatus

logger = logging.getLogger(__name__)


def confirmed_ranges(session: Session, barber_id: int, day: date) -> List[TimeRange]:
    appts = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date == day)
        .where(Appointment.status == AppointmentStatus.CONFIRMED)
    ).all()
    return [TimeRange.from_times(a.start_time, a.end_time) for a in appts]


def get_available_slots(
    session: Session,
    day: date,
    barber_id: int,
    service_id: int,
    now: datetime,
) -> List[TimeSlot]:
    """Bookable grid for a barber/service/day.

    Empty when the service is unknown or the day is fully blocked. Slots that
    start before ``now`` are left out; ``available=False`` marks slots that
    collide with a closure, an absence or a confirmed appointment.
    """
    service = session.get(Service, service_id)
    if service is None or not service.active:
        return []

    schedule = load_day_schedule(session, barber_id, day)
    reason = day_block_reason(schedule)
    if reason is not None:
        logger.debug(f"No slots for barber {barber_id} on {day}: {reason.value}")
        return []

    window = effective_window(schedule)
    shop_break = break_range(schedule.shop_hours)
    wh = schedule.working_hours

    # Anchored on the barber's hours so it matches the grid bookings are checked against
    candidates = [
        t
        for t in generate_time_slots(wh.start_time, wh.end_time, service.duration, wh.break_start, wh.break_end)
        if TimeRange.for_slot(t, service.duration).is_within(window)
        and not (shop_break and TimeRange.for_slot(t, service.duration).overlaps(shop_break))
        and not is_in_past(now, day, t)
    ]

    busy = blocked_ranges(schedule) + confirmed_ranges(session, barber_id, day)

    slots = []
    for t in candidates:
        slot = TimeRange.for_slot(t, service.duration)
        available = not any(slot.overlaps(r) for r in busy)
        slots.append(TimeSlot(time=t, available=available))
    return slots
