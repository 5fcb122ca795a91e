# barbershop/routers/catalog_routes.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.deps import get_now
from barbershop.models import ShopHours
from barbershop.schemas import BarberPublic, ServicePublic, ShopHoursDay, SlotsResponse
from barbershop.scheduling.queries import get_barbers, get_services, service_public
from barbershop.scheduling.slots import get_available_slots

router = APIRouter(
    tags=["catalog"],
)


@router.get("/services", response_model=List[ServicePublic])
def list_services(
    barber_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    return [service_public(s) for s in get_services(session, barber_id)]


@router.get("/barbers", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    return [
        {"id": b.id, "name": b.name, "avatar_url": b.avatar_url}
        for b in get_barbers(session)
    ]


@router.get("/slots", response_model=SlotsResponse)
def list_slots(
    date: date,
    barber_id: int,
    service_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    # recomputed on every request; any booking can change it
    slots = get_available_slots(session, date, barber_id, service_id, now)
    return {"barber_id": barber_id, "service_id": service_id, "date": date, "slots": slots}


@router.get("/shop-hours", response_model=List[ShopHoursDay])
def list_shop_hours(session: Session = Depends(get_session)):
    rows = {h.day_of_week: h for h in session.exec(select(ShopHours)).all()}
    week = []
    for day in range(7):
        h = rows.get(day)
        if h is None:
            week.append({"day_of_week": day, "is_open": False})
        else:
            week.append(
                {
                    "day_of_week": day,
                    "is_open": h.is_open,
                    "start_time": h.start_time,
                    "end_time": h.end_time,
                    "break_start": h.break_start,
                    "break_end": h.break_end,
                }
            )
    return week
