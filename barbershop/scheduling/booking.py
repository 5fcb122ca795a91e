# barbershop/scheduling/booking.py
"""Booking transaction.

Requests are validated against the schedule first (no writes). The overlap
check and the insert then run in one transaction holding the barber's row
lock, so two requests for the same barber are serialized and at most one of
two overlapping bookings can commit.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core import TimeRange, add_minutes, is_in_past, normalize_phone
from ..errors import BookingError, ErrorCode
from ..models import CONFIRMED_SLOT_INDEX, Appointment, AppointmentOwner, Barber, GuestClient, Service
from ..schemas import AppointmentCreate, GuestAppointmentCreate
from .policy import load_day_schedule, slot_booking_error
from .status import AppointmentStatus

logger = logging.getLogger(__name__)


def validate_booking_request(session: Session, data: AppointmentCreate, now: datetime) -> Service:
    """Pre-transaction checks. Returns the service being booked."""
    service = session.get(Service, data.service_id)
    if service is None or not service.active:
        raise BookingError(ErrorCode.SERVICE_NOT_FOUND)

    if is_in_past(now, data.date, data.start_time):
        raise BookingError(ErrorCode.SLOT_IN_PAST)

    barber = session.get(Barber, data.barber_id)
    if barber is None or not barber.active:
        raise BookingError(ErrorCode.BARBER_UNAVAILABLE)

    schedule = load_day_schedule(session, data.barber_id, data.date)
    error = slot_booking_error(schedule, data.start_time, service.duration)
    if error is not None:
        raise BookingError(error)

    return service


def lock_barber_day(session: Session, barber_id: int) -> None:
    # Row lock on the barber; held until commit/rollback.
    session.exec(select(Barber).where(Barber.id == barber_id).with_for_update()).one()


def has_overlapping_appointment(
    session: Session,
    barber_id: int,
    day: date,
    start_time: str,
    end_time: str,
) -> bool:
    """Not atomic by itself; call it after ``lock_barber_day`` in the same transaction."""
    new_range = TimeRange.from_times(start_time, end_time)
    existing = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date == day)
        .where(Appointment.status == AppointmentStatus.CONFIRMED)
    ).all()
    return any(new_range.overlaps(TimeRange.from_times(a.start_time, a.end_time)) for a in existing)


def find_guest_client(session: Session, phone: str) -> Optional[GuestClient]:
    return session.exec(select(GuestClient).where(GuestClient.phone == phone)).first()


def upsert_guest_client(session: Session, full_name: str, phone: str) -> GuestClient:
    """Guest keyed by phone digits; the name is refreshed on every booking.

    The barber lock does not cover guests, so a booking with another barber
    may insert the same phone first. That insert runs in a savepoint and the
    existing row is used instead.
    """
    guest = find_guest_client(session, phone)
    if guest is None:
        try:
            with session.begin_nested():
                guest = GuestClient(full_name=full_name, phone=phone)
                session.add(guest)
        except IntegrityError:
            guest = session.exec(select(GuestClient).where(GuestClient.phone == phone)).one()
            logger.info(f"Guest {guest.id} was created by a concurrent booking")
    guest.full_name = full_name
    session.add(guest)
    session.flush()
    return guest


def is_slot_conflict(error: IntegrityError) -> bool:
    """True when ``error`` comes from the confirmed-slot unique index."""
    orig = error.orig
    constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint is not None:
        return constraint == CONFIRMED_SLOT_INDEX
    message = str(orig)
    # SQLite names the columns, not the index
    return CONFIRMED_SLOT_INDEX in message or (
        "UNIQUE constraint failed" in message
        and "appointment.barber_id, appointment.date, appointment.start_time" in message
    )


def _book(
    session: Session,
    data: AppointmentCreate,
    service: Service,
    owner: Optional[AppointmentOwner] = None,
    guest_name: Optional[str] = None,
    guest_phone: Optional[str] = None,
) -> Appointment:
    end_time = add_minutes(data.start_time, service.duration)

    try:
        lock_barber_day(session, data.barber_id)

        if has_overlapping_appointment(session, data.barber_id, data.date, data.start_time, end_time):
            raise BookingError(ErrorCode.SLOT_OCCUPIED)

        if owner is None:
            owner = AppointmentOwner.guest(upsert_guest_client(session, guest_name, guest_phone).id)

        appointment = Appointment(
            barber_id=data.barber_id,
            service_id=service.id,
            date=data.date,
            start_time=data.start_time,
            end_time=end_time,
            status=AppointmentStatus.CONFIRMED,
        )
        appointment.set_owner(owner)
        session.add(appointment)
        session.commit()
    except BookingError as e:
        session.rollback()
        logger.warning(f"Booking rejected for barber {data.barber_id} on {data.date} {data.start_time}: {e.code.value}")
        raise
    except IntegrityError as e:
        session.rollback()
        if not is_slot_conflict(e):
            logger.error(f"Booking for barber {data.barber_id} on {data.date} {data.start_time} failed: {e.orig}")
            raise
        logger.warning(f"Booking lost a race for barber {data.barber_id} on {data.date} {data.start_time}")
        raise BookingError(ErrorCode.SLOT_OCCUPIED)

    session.refresh(appointment)  # fills appointment.id
    logger.info(
        f"Appointment {appointment.id} booked: barber {appointment.barber_id} "
        f"{appointment.date} {appointment.start_time}-{appointment.end_time} ({owner.kind.value})"
    )
    return appointment


def create_appointment(
    session: Session,
    data: AppointmentCreate,
    client_id: int,
    now: datetime,
) -> Appointment:
    """Book for a registered client."""
    service = validate_booking_request(session, data, now)
    return _book(session, data, service, owner=AppointmentOwner.client(client_id))


def create_guest_appointment(
    session: Session,
    data: GuestAppointmentCreate,
    now: datetime,
) -> Appointment:
    """Book without an account; the guest record is upserted by phone digits."""
    service = validate_booking_request(session, data, now)
    phone = normalize_phone(data.client_phone)
    return _book(session, data, service, guest_name=data.client_name.strip(), guest_phone=phone)
