# barbershop/deps.py

from datetime import datetime

from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from .auth import get_current_user
from .core import parse_time, shop_now
from .db import get_session
from .models import Barber


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def validate_window(start_time, end_time, what: str = "time range", allow_empty: bool = True):
    """422 unless both times are set with start < end (or both empty when allowed)."""
    if start_time is None and end_time is None and allow_empty:
        return
    if start_time is None or end_time is None:
        raise HTTPException(status_code=422, detail=f"{what} needs both start and end")
    if parse_time(start_time) >= parse_time(end_time):
        raise HTTPException(status_code=422, detail=f"{what} must end after it starts")


def get_now() -> datetime:
    # overridden in tests to freeze the shop clock
    return shop_now()


def get_current_barber(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
) -> Barber:
    require_role(current_user, "barber")
    barber = session.exec(select(Barber).where(Barber.user_id == current_user["id"])).first()
    if barber is None or not barber.active:
        raise HTTPException(status_code=403, detail="Barber profile not found")
    return barber
