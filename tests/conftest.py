from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from barbershop.auth import create_access_token
from barbershop.core import SHOP_TZ
from barbershop.db import build_engine, create_db_and_tables, get_session
from barbershop.deps import get_now
from barbershop.main import app
from barbershop.models import (
    Appointment,
    Barber,
    BarberAbsence,
    BarberService,
    Service,
    ShopClosure,
    ShopHours,
    User,
    WorkingHours,
)
from barbershop.scheduling.status import AppointmentStatus

SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
# Sunday morning before the test week, shop time
NOW = datetime(2030, 1, 6, 10, 0, tzinfo=SHOP_TZ)


def shop_time(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=SHOP_TZ)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    # no expiry on commit: fixtures never hold a transaction open
    with Session(engine, expire_on_commit=False) as session:
        yield session


def add_user(session, email, role="client", full_name="Test User", phone=None) -> User:
    user = User(email=email, password_hash="not-a-real-hash", role=role, full_name=full_name, phone=phone)
    session.add(user)
    session.commit()
    return user


def set_working_hours(session, barber, day_of_week=0, start="09:00", end="10:00",
                      break_start=None, break_end=None) -> WorkingHours:
    hours = WorkingHours(
        barber_id=barber.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
    )
    session.add(hours)
    session.commit()
    return hours


def set_shop_hours(session, day_of_week, start="09:00", end="18:00", break_start=None, break_end=None):
    row = session.get(ShopHours, day_of_week)
    row.is_open = True
    row.start_time, row.end_time = start, end
    row.break_start, row.break_end = break_start, break_end
    session.add(row)
    session.commit()


def add_closure(session, day, start=None, end=None) -> ShopClosure:
    closure = ShopClosure(date=day, start_time=start, end_time=end, reason="holiday")
    session.add(closure)
    session.commit()
    return closure


def add_absence(session, barber, day, start=None, end=None) -> BarberAbsence:
    absence = BarberAbsence(barber_id=barber.id, date=day, start_time=start, end_time=end, reason="dentist")
    session.add(absence)
    session.commit()
    return absence


def add_appointment(session, barber, service, client=None, guest=None, day=MONDAY,
                    start="09:00", end="09:30", status=AppointmentStatus.CONFIRMED) -> Appointment:
    appt = Appointment(
        client_id=client.id if client else None,
        guest_client_id=guest.id if guest else None,
        barber_id=barber.id,
        service_id=service.id,
        date=day,
        start_time=start,
        end_time=end,
        status=status,
    )
    session.add(appt)
    session.commit()
    return appt


@pytest.fixture
def shop_hours(session):
    # Mon-Sat 09:00-18:00, no break; Sunday closed
    for day in range(6):
        session.add(ShopHours(day_of_week=day, is_open=True, start_time="09:00", end_time="18:00"))
    session.add(ShopHours(day_of_week=6, is_open=False))
    session.commit()


@pytest.fixture
def barber(session, shop_hours) -> Barber:
    user = add_user(session, "rafael@barbershop.test", role="barber", full_name="Rafael")
    barber = Barber(user_id=user.id, name="Rafael")
    session.add(barber)
    session.commit()
    return barber


@pytest.fixture
def other_barber(session, shop_hours) -> Barber:
    user = add_user(session, "bruno@barbershop.test", role="barber", full_name="Bruno")
    barber = Barber(user_id=user.id, name="Bruno")
    session.add(barber)
    session.commit()
    return barber


@pytest.fixture
def haircut(session, barber) -> Service:
    service = Service(name="Corte Simples", duration=30, price=Decimal("30.00"))
    session.add(service)
    session.commit()
    session.add(BarberService(barber_id=barber.id, service_id=service.id))
    session.commit()
    return service


@pytest.fixture
def combo(session) -> Service:
    service = Service(name="Corte + Barba", duration=60, price=Decimal("90.00"))
    session.add(service)
    session.commit()
    return service


@pytest.fixture
def client_user(session) -> User:
    return add_user(session, "ana@example.com", full_name="Ana Souza", phone="11987654321")


@pytest.fixture
def other_client(session) -> User:
    return add_user(session, "joao@example.com", full_name="Joao Lima")


@pytest.fixture
def admin_user(session) -> User:
    return add_user(session, "admin@barbershop.test", role="admin", full_name="Admin")


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def api(engine):
    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_now] = lambda: NOW
    # no context manager: the lifespan would create tables on the default database
    yield TestClient(app)
    app.dependency_overrides.clear()
