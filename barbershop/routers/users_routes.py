# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user, hash_password, user_context
from barbershop.core import normalize_phone
from barbershop.db import get_session
from barbershop.models import Barber, User
from barbershop.schemas import UserCreate, UserPublic, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # admins are promoted out of band: python -m barbershop.seed --admin EMAIL
    if user.role == UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")

    email = user.email.strip().lower()
    if session.exec(select(User).where(User.email == email)).first() is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = User(
        email=email,
        password_hash=hash_password(user.password),
        role=user.role.value,
        full_name=user.full_name.strip(),
        phone=normalize_phone(user.phone) or None,
    )
    session.add(db_user)
    session.flush()

    # barbers get a bookable profile in the same transaction
    if user.role == UserRole.barber:
        session.add(Barber(user_id=db_user.id, name=db_user.full_name))

    session.commit()
    session.refresh(db_user)
    logger.info(f"User {db_user.id} registered as {db_user.role}")
    return user_context(db_user)
