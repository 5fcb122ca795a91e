# barbershop/scheduling/cancellation.py

import logging
from datetime import date, datetime

from sqlmodel import Session, select

from ..config import CANCELLATION_WARNING_MINUTES
from ..core import local_today, minutes_until, normalize_phone, shop_datetime
from ..errors import BookingError, ErrorCode
from ..models import Appointment, GuestClient, utcnow
from ..schemas import CancellationStatus
from .status import AppointmentStatus, ensure_transition

logger = logging.getLogger(__name__)


# ---- pure policy ----

def can_client_cancel(now: datetime, appointment_date: date, start_time: str) -> bool:
    # Day-level only. The late window below is a warning, not a block.
    return appointment_date >= local_today(now)


def should_warn_late_cancellation(
    now: datetime,
    appointment_date: date,
    start_time: str,
    window_minutes: int = CANCELLATION_WARNING_MINUTES,
) -> bool:
    remaining = minutes_until(now, appointment_date, start_time)
    return 0 < remaining < window_minutes


def has_started(now: datetime, appointment_date: date, start_time: str) -> bool:
    return now >= shop_datetime(appointment_date, start_time)


def has_ended(now: datetime, appointment_date: date, end_time: str) -> bool:
    return now >= shop_datetime(appointment_date, end_time)


def cancellation_status(now: datetime, appointment: Appointment) -> CancellationStatus:
    can_cancel = (
        appointment.status == AppointmentStatus.CONFIRMED
        and can_client_cancel(now, appointment.date, appointment.start_time)
    )
    return CancellationStatus(
        can_cancel=can_cancel,
        warn_late=can_cancel and should_warn_late_cancellation(now, appointment.date, appointment.start_time),
    )


# ---- transitions ----

def _get_appointment(session: Session, appointment_id: int) -> Appointment:
    appointment = session.get(Appointment, appointment_id)
    if appointment is None:
        raise BookingError(ErrorCode.APPOINTMENT_NOT_FOUND)
    return appointment


def _apply(session: Session, appointment: Appointment, target: AppointmentStatus, reason=None) -> Appointment:
    appointment.status = target
    if reason is not None:
        appointment.cancel_reason = reason
    appointment.updated_at = utcnow()
    session.add(appointment)
    session.commit()
    session.refresh(appointment)
    logger.info(f"Appointment {appointment.id} -> {target.value}")
    return appointment


def cancel_appointment_by_client(
    session: Session,
    appointment_id: int,
    client_id: int,
    now: datetime,
) -> Appointment:
    appointment = _get_appointment(session, appointment_id)
    if appointment.client_id != client_id:
        raise BookingError(ErrorCode.UNAUTHORIZED)
    ensure_transition(appointment.status, AppointmentStatus.CANCELLED_BY_CLIENT)
    if not can_client_cancel(now, appointment.date, appointment.start_time):
        raise BookingError(ErrorCode.APPOINTMENT_IN_PAST)

    if should_warn_late_cancellation(now, appointment.date, appointment.start_time):
        logger.info(f"Late cancellation of appointment {appointment.id} by client {client_id}")
    return _apply(session, appointment, AppointmentStatus.CANCELLED_BY_CLIENT)


def cancel_appointment_by_guest(
    session: Session,
    appointment_id: int,
    phone: str,
    now: datetime,
) -> Appointment:
    guest = session.exec(select(GuestClient).where(GuestClient.phone == normalize_phone(phone))).first()
    if guest is None:
        raise BookingError(ErrorCode.GUEST_NOT_FOUND)

    appointment = _get_appointment(session, appointment_id)
    if appointment.guest_client_id != guest.id:
        raise BookingError(ErrorCode.UNAUTHORIZED)
    ensure_transition(appointment.status, AppointmentStatus.CANCELLED_BY_CLIENT)
    # guests lose the option once the appointment has started
    if has_started(now, appointment.date, appointment.start_time):
        raise BookingError(ErrorCode.APPOINTMENT_IN_PAST)

    return _apply(session, appointment, AppointmentStatus.CANCELLED_BY_CLIENT)


def cancel_appointment_by_barber(
    session: Session,
    appointment_id: int,
    barber_id: int,
    reason: str,
) -> Appointment:
    reason = (reason or "").strip()
    if not reason:
        raise BookingError(ErrorCode.CANCELLATION_REASON_REQUIRED)

    appointment = _get_appointment(session, appointment_id)
    if appointment.barber_id != barber_id:
        raise BookingError(ErrorCode.UNAUTHORIZED)
    ensure_transition(appointment.status, AppointmentStatus.CANCELLED_BY_BARBER)

    return _apply(session, appointment, AppointmentStatus.CANCELLED_BY_BARBER, reason=reason)


def mark_no_show(
    session: Session,
    appointment_id: int,
    barber_id: int,
    now: datetime,
) -> Appointment:
    appointment = _get_appointment(session, appointment_id)
    if appointment.barber_id != barber_id:
        raise BookingError(ErrorCode.UNAUTHORIZED)
    ensure_transition(appointment.status, AppointmentStatus.NO_SHOW, error=ErrorCode.APPOINTMENT_NOT_MARKABLE)
    if not has_ended(now, appointment.date, appointment.end_time):
        raise BookingError(ErrorCode.APPOINTMENT_NOT_STARTED)

    return _apply(session, appointment, AppointmentStatus.NO_SHOW)
