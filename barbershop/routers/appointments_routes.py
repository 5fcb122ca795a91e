# barbershop/routers/appointments_routes.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlmodel import Session

from barbershop.auth import get_current_user
from barbershop.core import local_today, normalize_phone
from barbershop.db import get_session
from barbershop.deps import get_current_barber, get_now, require_role
from barbershop.errors import BookingError, ErrorCode
from barbershop.models import Appointment, Barber
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    CancelRequest,
    CancellationStatus,
    GuestAppointmentCreate,
    GuestPhone,
)
from barbershop.scheduling.booking import create_appointment, create_guest_appointment
from barbershop.scheduling.cancellation import (
    cancel_appointment_by_barber,
    cancel_appointment_by_client,
    cancel_appointment_by_guest,
    cancellation_status,
    mark_no_show,
)
from barbershop.scheduling.queries import (
    appointment_details,
    get_client_appointments,
    get_guest_appointments,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _valid_phone(phone: str) -> str:
    digits = normalize_phone(phone)
    if not 10 <= len(digits) <= 11:
        raise HTTPException(status_code=422, detail="Phone must have 10 or 11 digits")
    return digits


@router.post("", response_model=AppointmentPublic, status_code=201)
def book_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_role(current_user, "client")  # barbers book for walk-ins as guests
    appointment = create_appointment(session, appt, current_user["id"], now)
    return appointment_details(appointment)


@router.post("/guest", response_model=AppointmentPublic, status_code=201)
def book_guest_appointment(
    appt: GuestAppointmentCreate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    _valid_phone(appt.client_phone)
    appointment = create_guest_appointment(session, appt, now)
    return appointment_details(appointment)


@router.get("/me", response_model=List[AppointmentPublic])
def list_my_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_role(current_user, "client")
    appts = get_client_appointments(session, current_user["id"], local_today(now))
    return [appointment_details(a) for a in appts]


@router.post("/guest/lookup", response_model=List[AppointmentPublic])
def lookup_guest_appointments(
    body: GuestPhone,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    appts = get_guest_appointments(session, _valid_phone(body.phone), local_today(now))
    return [appointment_details(a) for a in appts]


@router.get("/{appt_id}/cancellation-status", response_model=CancellationStatus)
def get_cancellation_status(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    target = session.get(Appointment, appt_id)
    if target is None:
        raise BookingError(ErrorCode.APPOINTMENT_NOT_FOUND)
    if target.client_id != current_user["id"]:
        raise BookingError(ErrorCode.UNAUTHORIZED)
    return cancellation_status(now, target)


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    body: Optional[CancelRequest] = Body(default=None),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    # Barbers cancel with a reason; clients cancel their own bookings
    if current_user["role"] == "barber":
        barber = get_current_barber(session, current_user)
        reason = body.reason if body is not None else None
        appointment = cancel_appointment_by_barber(session, appt_id, barber.id, reason)
    else:
        appointment = cancel_appointment_by_client(session, appt_id, current_user["id"], now)
    return appointment_details(appointment)


@router.patch("/guest/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_guest_appointment(
    appt_id: int,
    body: GuestPhone,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    appointment = cancel_appointment_by_guest(session, appt_id, body.phone, now)
    return appointment_details(appointment)


@router.patch("/{appt_id}/no-show", response_model=AppointmentPublic)
def mark_appointment_no_show(
    appt_id: int,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
    now: datetime = Depends(get_now),
):
    appointment = mark_no_show(session, appt_id, barber.id, now)
    return appointment_details(appointment)
