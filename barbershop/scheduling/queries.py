# barbershop/scheduling/queries.py

from datetime import date, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from ..core import normalize_phone
from ..models import Appointment, Barber, BarberService, GuestClient, Service
from ..schemas import (
    AppointmentPublic,
    BarberSummary,
    PersonSummary,
    ServicePublic,
    ServiceSummary,
)


def service_public(service: Service) -> ServicePublic:
    return ServicePublic(
        id=service.id,
        name=service.name,
        description=service.description,
        duration=service.duration,
        price=float(service.price),
        active=service.active,
    )


def get_services(session: Session, barber_id: Optional[int] = None) -> List[Service]:
    """Active services by name, optionally only those the barber performs."""
    stmt = select(Service).where(Service.active == True)  # noqa: E712
    if barber_id is not None:
        stmt = stmt.join(BarberService, BarberService.service_id == Service.id).where(
            BarberService.barber_id == barber_id
        )
    return list(session.exec(stmt.order_by(Service.name)).all())


def get_barbers(session: Session) -> List[Barber]:
    return list(session.exec(select(Barber).where(Barber.active == True).order_by(Barber.name)).all())  # noqa: E712


def appointment_details(appointment: Appointment) -> AppointmentPublic:
    """Appointment plus the service/barber/client fields the UI shows."""
    client = guest = None
    if appointment.client is not None:
        c = appointment.client
        client = PersonSummary(id=c.id, full_name=c.full_name, phone=c.phone)
    if appointment.guest_client is not None:
        g = appointment.guest_client
        guest = PersonSummary(id=g.id, full_name=g.full_name, phone=g.phone)

    return AppointmentPublic(
        id=appointment.id,
        client_id=appointment.client_id,
        guest_client_id=appointment.guest_client_id,
        barber_id=appointment.barber_id,
        service_id=appointment.service_id,
        date=appointment.date,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status.value,
        cancel_reason=appointment.cancel_reason,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
        client=client,
        guest_client=guest,
        barber=BarberSummary(
            id=appointment.barber.id,
            name=appointment.barber.name,
            avatar_url=appointment.barber.avatar_url,
        ),
        service=ServiceSummary(
            id=appointment.service.id,
            name=appointment.service.name,
            duration=appointment.service.duration,
            price=float(appointment.service.price),
        ),
    )


def _ordered(stmt):
    return stmt.order_by(Appointment.date, Appointment.start_time)


def get_client_appointments(session: Session, client_id: int, today: date) -> List[Appointment]:
    """From today on, any status."""
    stmt = select(Appointment).where(Appointment.client_id == client_id).where(Appointment.date >= today)
    return list(session.exec(_ordered(stmt)).all())


def get_guest_appointments(session: Session, phone: str, today: date) -> List[Appointment]:
    guest = session.exec(select(GuestClient).where(GuestClient.phone == normalize_phone(phone))).first()
    if guest is None:
        return []
    stmt = select(Appointment).where(Appointment.guest_client_id == guest.id).where(Appointment.date >= today)
    return list(session.exec(_ordered(stmt)).all())


def get_barber_appointments(session: Session, barber_id: int, start: date, end: date) -> List[Appointment]:
    # both ends inclusive
    stmt = (
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date >= start)
        .where(Appointment.date < end + timedelta(days=1))
    )
    return list(session.exec(_ordered(stmt)).all())
