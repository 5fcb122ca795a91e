# barbershop/routers/admin_routes.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.core import local_today
from barbershop.db import get_session
from barbershop.deps import get_now, require_role, validate_window
from barbershop.models import Barber, BarberService, Service, ShopClosure, ShopHours
from barbershop.schemas import (
    BarberServicesUpdate,
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    ShopHoursDay,
    TimeOffCreate,
    TimeOffPublic,
)
from barbershop.scheduling.queries import service_public

logger = logging.getLogger(__name__)


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.put("/shop-hours", response_model=List[ShopHoursDay])
def put_shop_hours(
    days: List[ShopHoursDay],
    session: Session = Depends(get_session),
):
    if len({d.day_of_week for d in days}) != len(days):
        raise HTTPException(status_code=422, detail="day_of_week cannot contain duplicates")

    for day in days:
        if day.is_open:
            validate_window(day.start_time, day.end_time, "Shop hours", allow_empty=False)
            validate_window(day.break_start, day.break_end, "Break")

    for day in days:
        row = session.get(ShopHours, day.day_of_week) or ShopHours(day_of_week=day.day_of_week)
        row.is_open = day.is_open
        if day.is_open:
            row.start_time, row.end_time = day.start_time, day.end_time
            row.break_start, row.break_end = day.break_start, day.break_end
        else:
            row.start_time = row.end_time = row.break_start = row.break_end = None
        session.add(row)
    session.commit()
    logger.info(f"Shop hours updated for days {[d.day_of_week for d in days]}")
    return days


@router.get("/shop-closures", response_model=List[TimeOffPublic])
def list_shop_closures(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    return session.exec(
        select(ShopClosure)
        .where(ShopClosure.date >= local_today(now))
        .order_by(ShopClosure.date, ShopClosure.start_time)
    ).all()


@router.post("/shop-closures", response_model=TimeOffPublic, status_code=201)
def create_shop_closure(
    closure: TimeOffCreate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    validate_window(closure.start_time, closure.end_time, "Closure")
    if closure.date < local_today(now):
        raise HTTPException(status_code=422, detail="Closure date cannot be in the past")

    db_closure = ShopClosure(
        date=closure.date,
        start_time=closure.start_time,
        end_time=closure.end_time,
        reason=closure.reason,
    )
    session.add(db_closure)
    session.commit()
    session.refresh(db_closure)
    logger.info(f"Shop closure {db_closure.id} added on {db_closure.date}")
    return db_closure


@router.delete("/shop-closures/{closure_id}", status_code=204)
def delete_shop_closure(
    closure_id: int,
    session: Session = Depends(get_session),
):
    db_closure = session.get(ShopClosure, closure_id)
    if db_closure is None:
        raise HTTPException(status_code=404, detail="Closure not found")
    session.delete(db_closure)
    session.commit()


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
):
    db_service = Service(
        name=service.name.strip(),
        description=service.description,
        duration=service.duration,
        price=Decimal(str(service.price)),
        active=service.active,
    )
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return service_public(db_service)


@router.patch("/services/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    changes: ServiceUpdate,
    session: Session = Depends(get_session),
):
    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    # existing appointments keep their stored end_time
    for key, value in changes.model_dump(exclude_unset=True).items():
        if key == "price" and value is not None:
            value = Decimal(str(value))
        setattr(db_service, key, value)
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return service_public(db_service)


@router.put("/barbers/{barber_id}/services", response_model=List[ServicePublic])
def set_barber_services(
    barber_id: int,
    body: BarberServicesUpdate,
    session: Session = Depends(get_session),
):
    if session.get(Barber, barber_id) is None:
        raise HTTPException(status_code=404, detail="Barber not found")

    services = []
    for service_id in dict.fromkeys(body.service_ids):
        service = session.get(Service, service_id)
        if service is None:
            raise HTTPException(status_code=422, detail=f"Unknown service {service_id}")
        services.append(service)

    for link in session.exec(select(BarberService).where(BarberService.barber_id == barber_id)).all():
        session.delete(link)
    session.flush()
    for service in services:
        session.add(BarberService(barber_id=barber_id, service_id=service.id))
    session.commit()
    return [service_public(s) for s in sorted(services, key=lambda s: s.name)]
