# barbershop/routers/barbers_routes.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.core import local_today
from barbershop.db import get_session
from barbershop.deps import get_current_barber, get_now, validate_window
from barbershop.models import Barber, BarberAbsence, WorkingHours
from barbershop.schemas import AppointmentPublic, TimeOffCreate, TimeOffPublic, WorkingHoursDay
from barbershop.scheduling.queries import appointment_details, get_barber_appointments

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def working_week(rows: List[WorkingHours]) -> List[dict]:
    """All 7 days; days without a row are non-working."""
    by_day = {h.day_of_week: h for h in rows}
    week = []
    for day in range(7):
        h = by_day.get(day)
        if h is None:
            week.append({"day_of_week": day, "is_working": False})
        else:
            week.append(
                {
                    "day_of_week": day,
                    "is_working": True,
                    "start_time": h.start_time,
                    "end_time": h.end_time,
                    "break_start": h.break_start,
                    "break_end": h.break_end,
                }
            )
    return week


def save_working_hours(session: Session, barber_id: int, days: List[WorkingHoursDay]) -> None:
    """Upsert working days and delete non-working ones, in one commit."""
    if len({d.day_of_week for d in days}) != len(days):
        raise HTTPException(status_code=422, detail="day_of_week cannot contain duplicates")

    for day in days:
        if not day.is_working:
            continue
        validate_window(day.start_time, day.end_time, "Working hours", allow_empty=False)
        validate_window(day.break_start, day.break_end, "Break")
        if day.break_start and not (day.start_time <= day.break_start and day.break_end <= day.end_time):
            raise HTTPException(status_code=422, detail="Break must be within working hours")

    existing = {
        h.day_of_week: h
        for h in session.exec(select(WorkingHours).where(WorkingHours.barber_id == barber_id)).all()
    }
    for day in days:
        row = existing.get(day.day_of_week)
        if day.is_working:
            if row is None:
                row = WorkingHours(barber_id=barber_id, day_of_week=day.day_of_week,
                                   start_time=day.start_time, end_time=day.end_time)
            row.start_time = day.start_time
            row.end_time = day.end_time
            row.break_start = day.break_start
            row.break_end = day.break_end
            session.add(row)
        elif row is not None:
            session.delete(row)
    session.commit()


@router.get("/me/working-hours", response_model=List[WorkingHoursDay])
def get_my_working_hours(
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    rows = session.exec(select(WorkingHours).where(WorkingHours.barber_id == barber.id)).all()
    return working_week(rows)


@router.put("/me/working-hours", response_model=List[WorkingHoursDay])
def put_my_working_hours(
    days: List[WorkingHoursDay],
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    if not days:
        raise HTTPException(status_code=422, detail="At least one day is required")
    save_working_hours(session, barber.id, days)
    logger.info(f"Working hours updated for barber {barber.id}")

    rows = session.exec(select(WorkingHours).where(WorkingHours.barber_id == barber.id)).all()
    return working_week(rows)


@router.get("/me/absences", response_model=List[TimeOffPublic])
def list_my_absences(
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
    now: datetime = Depends(get_now),
):
    return session.exec(
        select(BarberAbsence)
        .where(BarberAbsence.barber_id == barber.id)
        .where(BarberAbsence.date >= local_today(now))
        .order_by(BarberAbsence.date, BarberAbsence.start_time)
    ).all()


@router.post("/me/absences", response_model=TimeOffPublic, status_code=201)
def create_my_absence(
    absence: TimeOffCreate,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
    now: datetime = Depends(get_now),
):
    validate_window(absence.start_time, absence.end_time, "Absence")
    if absence.date < local_today(now):
        raise HTTPException(status_code=422, detail="Absence date cannot be in the past")

    db_absence = BarberAbsence(
        barber_id=barber.id,
        date=absence.date,
        start_time=absence.start_time,
        end_time=absence.end_time,
        reason=absence.reason,
    )
    session.add(db_absence)
    session.commit()
    session.refresh(db_absence)
    logger.info(f"Absence {db_absence.id} added for barber {barber.id} on {db_absence.date}")
    return db_absence


@router.delete("/me/absences/{absence_id}", status_code=204)
def delete_my_absence(
    absence_id: int,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    db_absence = session.get(BarberAbsence, absence_id)
    if db_absence is None or db_absence.barber_id != barber.id:
        raise HTTPException(status_code=404, detail="Absence not found")
    session.delete(db_absence)
    session.commit()


@router.get("/me/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
    now: datetime = Depends(get_now),
):
    # defaults to the coming week
    start = start or local_today(now)
    end = end or start + timedelta(days=7)
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")

    appts = get_barber_appointments(session, barber.id, start, end)
    return [appointment_details(a) for a in appts]
