# barbershop/seed.py
"""Default shop data.

    python -m barbershop.seed                 # shop hours + services
    python -m barbershop.seed --admin a@b.com # promote an existing user
"""

import argparse
import logging
from decimal import Decimal

from sqlmodel import Session, select

from .db import create_db_and_tables, engine
from .models import Service, ShopHours, User

logger = logging.getLogger(__name__)

# Mon-Sat 09:00-18:00 with lunch, Sunday closed
DEFAULT_SHOP_HOURS = [
    {"day_of_week": day, "is_open": True, "start_time": "09:00", "end_time": "18:00",
     "break_start": "12:00", "break_end": "13:00"}
    for day in range(6)
] + [{"day_of_week": 6, "is_open": False}]

DEFAULT_SERVICES = [
    ("Corte Simples", 30, "30.00"),
    ("Corte Degradê Navalhado", 45, "60.00"),
    ("Corte + Barba", 60, "90.00"),
    ("Barba Completa", 30, "45.00"),
    ("Corte na Tesoura", 45, "60.00"),
    ("Sobrancelha na Navalha", 15, "20.00"),
]


def seed_shop_hours(session: Session) -> None:
    for values in DEFAULT_SHOP_HOURS:
        row = session.get(ShopHours, values["day_of_week"]) or ShopHours(day_of_week=values["day_of_week"])
        row.is_open = values["is_open"]
        row.start_time = values.get("start_time")
        row.end_time = values.get("end_time")
        row.break_start = values.get("break_start")
        row.break_end = values.get("break_end")
        session.add(row)
    session.commit()
    logger.info("Shop hours set to defaults")


def seed_services(session: Session) -> None:
    existing = {s.name for s in session.exec(select(Service)).all()}
    for name, duration, price in DEFAULT_SERVICES:
        if name not in existing:
            session.add(Service(name=name, duration=duration, price=Decimal(price)))
    session.commit()
    logger.info(f"{len(DEFAULT_SERVICES)} default services present")


def promote_admin(session: Session, email: str) -> User:
    email = email.strip().lower()
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None:
        raise LookupError(f"No user with email {email}")
    user.role = "admin"
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User {user.id} promoted to admin")
    return user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed barbershop defaults")
    parser.add_argument("--admin", metavar="EMAIL", help="promote this user to admin")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    create_db_and_tables()
    with Session(engine) as session:
        if args.admin:
            promote_admin(session, args.admin)
        else:
            seed_shop_hours(session)
            seed_services(session)


if __name__ == "__main__":
    main()
