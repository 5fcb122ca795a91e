from datetime import timedelta

from barbershop.models import Barber, BarberService, GuestClient, Service
from barbershop.scheduling.queries import (
    appointment_details,
    get_barber_appointments,
    get_barbers,
    get_client_appointments,
    get_guest_appointments,
    get_services,
)
from barbershop.scheduling.status import AppointmentStatus

from conftest import MONDAY, SUNDAY, TUESDAY, add_appointment, add_user


def test_services_are_active_and_sorted(session, haircut, combo):
    session.add(Service(name="Barba Completa", duration=30))
    session.add(Service(name="Alisamento", duration=90, active=False))
    session.commit()

    assert [s.name for s in get_services(session)] == ["Barba Completa", "Corte + Barba", "Corte Simples"]


def test_services_for_one_barber(session, barber, other_barber, haircut, combo):
    session.add(BarberService(barber_id=other_barber.id, service_id=combo.id))
    session.commit()

    assert [s.id for s in get_services(session, barber.id)] == [haircut.id]
    assert [s.id for s in get_services(session, other_barber.id)] == [combo.id]


def test_only_active_barbers(session, barber, other_barber):
    user = add_user(session, "old@barbershop.test", role="barber", full_name="Antigo")
    session.add(Barber(user_id=user.id, name="Antigo", active=False))
    session.commit()

    assert [b.name for b in get_barbers(session)] == ["Bruno", "Rafael"]


def test_client_appointments_from_today(session, barber, haircut, client_user, other_client):
    add_appointment(session, barber, haircut, client=client_user, day=SUNDAY - timedelta(days=1))
    later = add_appointment(session, barber, haircut, client=client_user, day=TUESDAY)
    earlier = add_appointment(
        session, barber, haircut, client=client_user, day=MONDAY, status=AppointmentStatus.CANCELLED_BY_CLIENT
    )
    add_appointment(session, barber, haircut, client=other_client, day=MONDAY, start="10:00", end="10:30")

    assert [a.id for a in get_client_appointments(session, client_user.id, SUNDAY)] == [earlier.id, later.id]


def test_guest_appointments_by_phone(session, barber, haircut):
    guest = GuestClient(full_name="Carlos", phone="11912345678")
    session.add(guest)
    session.commit()
    appt = add_appointment(session, barber, haircut, guest=guest)

    assert [a.id for a in get_guest_appointments(session, "(11) 91234-5678", SUNDAY)] == [appt.id]
    assert get_guest_appointments(session, "11900000000", SUNDAY) == []


def test_barber_range_includes_both_ends(session, barber, other_barber, haircut, client_user):
    sunday = add_appointment(session, barber, haircut, client=client_user, day=SUNDAY)
    tuesday = add_appointment(session, barber, haircut, client=client_user, day=TUESDAY, start="11:00", end="11:30")
    monday = add_appointment(session, barber, haircut, client=client_user, day=MONDAY)
    add_appointment(session, barber, haircut, client=client_user, day=TUESDAY + timedelta(days=1))
    add_appointment(session, other_barber, haircut, client=client_user, day=MONDAY)

    found = get_barber_appointments(session, barber.id, SUNDAY, TUESDAY)
    assert [a.id for a in found] == [sunday.id, monday.id, tuesday.id]


def test_appointment_details(session, barber, haircut, client_user):
    appt = add_appointment(session, barber, haircut, client=client_user)

    details = appointment_details(appt)
    assert details.status == "CONFIRMED"
    assert details.client.full_name == "Ana Souza"
    assert details.guest_client is None
    assert details.barber.name == "Rafael"
    assert details.service.name == "Corte Simples"
    assert details.service.price == 30.0
