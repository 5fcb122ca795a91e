import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.errors import BookingError, ErrorCode
from barbershop.models import Appointment, GuestClient, OwnerKind, Service
from barbershop.schemas import AppointmentCreate, GuestAppointmentCreate
from barbershop.scheduling import booking
from barbershop.scheduling.booking import (
    create_appointment,
    create_guest_appointment,
    validate_booking_request,
)
from barbershop.scheduling.cancellation import cancel_appointment_by_client
from barbershop.scheduling.status import AppointmentStatus

from conftest import (
    MONDAY,
    NOW,
    SUNDAY,
    add_absence,
    add_closure,
    set_working_hours,
    shop_time,
)


def request(barber, service, start_time="09:00", day=MONDAY):
    return AppointmentCreate(service_id=service.id, barber_id=barber.id, date=day, start_time=start_time)


def guest_request(barber, service, start_time="09:00", name="Carlos", phone="(11) 91234-5678"):
    return GuestAppointmentCreate(
        service_id=service.id,
        barber_id=barber.id,
        date=MONDAY,
        start_time=start_time,
        client_name=name,
        client_phone=phone,
    )


def assert_rejected(code, fn, *args):
    with pytest.raises(BookingError) as exc:
        fn(*args)
    assert exc.value.code == code


@pytest.fixture
def monday_hours(session, barber):
    return set_working_hours(session, barber, end="12:00")


def test_books_confirmed_appointment(session, barber, haircut, client_user, monday_hours):
    appt = create_appointment(session, request(barber, haircut, "09:30"), client_user.id, NOW)

    assert appt.id is not None
    assert appt.status == AppointmentStatus.CONFIRMED
    assert (appt.start_time, appt.end_time) == ("09:30", "10:00")
    assert appt.owner.kind == OwnerKind.client
    assert appt.owner.id == client_user.id
    assert appt.guest_client_id is None


def test_unknown_service(session, barber, client_user, monday_hours):
    data = AppointmentCreate(service_id=999, barber_id=barber.id, date=MONDAY, start_time="09:00")
    assert_rejected(ErrorCode.SERVICE_NOT_FOUND, create_appointment, session, data, client_user.id, NOW)


def test_inactive_service(session, barber, client_user, monday_hours):
    retired = Service(name="Relaxamento", duration=30, active=False)
    session.add(retired)
    session.commit()
    assert_rejected(ErrorCode.SERVICE_NOT_FOUND, create_appointment, session, request(barber, retired), client_user.id, NOW)


def test_past_slot(session, barber, haircut, client_user, monday_hours):
    now = shop_time(MONDAY, 9, 1)
    assert_rejected(ErrorCode.SLOT_IN_PAST, create_appointment, session, request(barber, haircut, "09:00"), client_user.id, now)


def test_unknown_or_inactive_barber(session, barber, haircut, client_user, monday_hours):
    data = AppointmentCreate(service_id=haircut.id, barber_id=999, date=MONDAY, start_time="09:00")
    assert_rejected(ErrorCode.BARBER_UNAVAILABLE, create_appointment, session, data, client_user.id, NOW)

    barber.active = False
    session.add(barber)
    session.commit()
    assert_rejected(ErrorCode.BARBER_UNAVAILABLE, create_appointment, session, request(barber, haircut), client_user.id, NOW)


def test_outside_working_hours(session, barber, haircut, client_user, monday_hours):
    assert_rejected(ErrorCode.BARBER_UNAVAILABLE, create_appointment, session, request(barber, haircut, "08:00"), client_user.id, NOW)
    assert_rejected(ErrorCode.BARBER_UNAVAILABLE, create_appointment, session, request(barber, haircut, "12:00"), client_user.id, NOW)


def test_off_grid_start(session, barber, haircut, client_user, monday_hours):
    assert_rejected(ErrorCode.SLOT_UNAVAILABLE, create_appointment, session, request(barber, haircut, "09:15"), client_user.id, NOW)


def test_shop_closed(session, barber, haircut, client_user):
    # barber works Sunday, the shop does not
    set_working_hours(session, barber, day_of_week=6)
    sunday = request(barber, haircut, day=SUNDAY + timedelta(days=7))
    assert_rejected(ErrorCode.SHOP_CLOSED, create_appointment, session, sunday, client_user.id, NOW)


def test_shop_closure(session, barber, haircut, client_user, monday_hours):
    add_closure(session, MONDAY, "09:00", "10:00")
    assert_rejected(ErrorCode.SHOP_CLOSED, create_appointment, session, request(barber, haircut, "09:30"), client_user.id, NOW)
    assert create_appointment(session, request(barber, haircut, "10:00"), client_user.id, NOW).id


def test_barber_absence(session, barber, haircut, client_user, monday_hours):
    add_absence(session, barber, MONDAY, "11:00", "12:00")
    assert_rejected(ErrorCode.BARBER_UNAVAILABLE, create_appointment, session, request(barber, haircut, "11:30"), client_user.id, NOW)


def test_overlapping_booking_is_rejected(session, barber, haircut, combo, client_user, other_client, monday_hours):
    create_appointment(session, request(barber, combo, "09:00"), client_user.id, NOW)

    assert_rejected(ErrorCode.SLOT_OCCUPIED, create_appointment, session, request(barber, haircut, "09:30"), other_client.id, NOW)
    assert_rejected(ErrorCode.SLOT_OCCUPIED, create_appointment, session, request(barber, haircut, "09:00"), other_client.id, NOW)
    assert create_appointment(session, request(barber, haircut, "10:00"), other_client.id, NOW).start_time == "10:00"


def test_same_time_with_other_barber(session, barber, other_barber, haircut, client_user, other_client, monday_hours):
    set_working_hours(session, other_barber, end="12:00")
    create_appointment(session, request(barber, haircut), client_user.id, NOW)
    assert create_appointment(session, request(other_barber, haircut), other_client.id, NOW).id


def test_rebook_after_cancel(session, barber, haircut, client_user, other_client, monday_hours):
    first = create_appointment(session, request(barber, haircut), client_user.id, NOW)
    cancel_appointment_by_client(session, first.id, client_user.id, NOW)

    second = create_appointment(session, request(barber, haircut), other_client.id, NOW)
    assert second.id != first.id
    assert second.status == AppointmentStatus.CONFIRMED


def test_validation_does_not_check_occupancy(session, barber, haircut, client_user, monday_hours):
    create_appointment(session, request(barber, haircut), client_user.id, NOW)
    assert validate_booking_request(session, request(barber, haircut), NOW).id == haircut.id


def test_rejected_booking_writes_nothing(session, barber, haircut, client_user, monday_hours):
    with pytest.raises(BookingError):
        create_guest_appointment(session, guest_request(barber, haircut, "09:15"), NOW)
    assert session.exec(select(Appointment)).all() == []
    assert session.exec(select(GuestClient)).all() == []


def test_guest_booking_creates_guest(session, barber, haircut, monday_hours):
    appt = create_guest_appointment(session, guest_request(barber, haircut), NOW)

    assert appt.client_id is None
    assert appt.owner.kind == OwnerKind.guest
    guest = session.get(GuestClient, appt.guest_client_id)
    assert guest.phone == "11912345678"
    assert guest.full_name == "Carlos"


def test_guest_is_reused_by_phone(session, barber, haircut, monday_hours):
    first = create_guest_appointment(session, guest_request(barber, haircut, "09:00"), NOW)
    second = create_guest_appointment(
        session, guest_request(barber, haircut, "09:30", name="Carlos Alberto", phone="11 91234 5678"), NOW
    )

    assert first.guest_client_id == second.guest_client_id
    guests = session.exec(select(GuestClient)).all()
    assert len(guests) == 1
    assert guests[0].full_name == "Carlos Alberto"


def test_unknown_client_is_not_a_slot_conflict(session, barber, haircut, monday_hours):
    with pytest.raises(IntegrityError):
        create_appointment(session, request(barber, haircut), 9999, NOW)
    assert session.exec(select(Appointment)).all() == []


def test_unique_slot_index_reports_occupied(monkeypatch, session, barber, haircut, client_user, other_client, monday_hours):
    create_appointment(session, request(barber, haircut), client_user.id, NOW)
    # let the insert reach the partial unique index
    monkeypatch.setattr(booking, "has_overlapping_appointment", lambda *args: False)

    assert_rejected(ErrorCode.SLOT_OCCUPIED, create_appointment, session, request(barber, haircut), other_client.id, NOW)
    assert len(session.exec(select(Appointment)).all()) == 1


def test_guest_inserted_by_another_booking_is_reused(monkeypatch, session, barber, haircut, monday_hours):
    existing = GuestClient(full_name="Carlos", phone="11912345678")
    session.add(existing)
    session.commit()
    # the phone lookup ran before the other booking committed its guest
    monkeypatch.setattr(booking, "find_guest_client", lambda s, phone: None)

    appt = create_guest_appointment(session, guest_request(barber, haircut, name="Carlos Alberto"), NOW)

    assert appt.guest_client_id == existing.id
    guests = session.exec(select(GuestClient)).all()
    assert len(guests) == 1
    assert guests[0].full_name == "Carlos Alberto"


def race(engine, attempts):
    """Run ``(data, client_id)`` bookings at once; returns "ok" or the error code per attempt."""
    barrier = threading.Barrier(len(attempts))

    def attempt(args):
        data, client_id = args
        with Session(engine) as s:
            barrier.wait()
            try:
                create_appointment(s, data, client_id, NOW)
                return "ok"
            except BookingError as e:
                return e.code

    with ThreadPoolExecutor(max_workers=len(attempts)) as pool:
        return list(pool.map(attempt, attempts))


def confirmed_for(engine, barber):
    with Session(engine) as s:
        return s.exec(
            select(Appointment)
            .where(Appointment.barber_id == barber.id)
            .where(Appointment.status == AppointmentStatus.CONFIRMED)
        ).all()


def test_concurrent_bookings_for_the_same_slot(engine, session, barber, haircut, client_user, other_client, monday_hours):
    data = request(barber, haircut, "10:00")
    results = race(engine, [(data, client_user.id), (data, other_client.id)])

    assert results.count("ok") == 1
    assert ErrorCode.SLOT_OCCUPIED in results
    assert len(confirmed_for(engine, barber)) == 1


def test_concurrent_overlapping_bookings(engine, session, barber, haircut, combo, client_user, other_client, monday_hours):
    # 09:00-10:00 and 09:30-10:00 start at different times, so only the lock keeps them apart
    results = race(
        engine,
        [(request(barber, combo, "09:00"), client_user.id), (request(barber, haircut, "09:30"), other_client.id)],
    )

    assert results.count("ok") == 1
    assert ErrorCode.SLOT_OCCUPIED in results
    assert len(confirmed_for(engine, barber)) == 1
