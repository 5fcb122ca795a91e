# barbershop/scheduling/status.py

from enum import Enum

from ..errors import BookingError, ErrorCode


class AppointmentStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED_BY_CLIENT = "CANCELLED_BY_CLIENT"
    CANCELLED_BY_BARBER = "CANCELLED_BY_BARBER"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# Terminal states have no outgoing edges
TRANSITIONS = {
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.CANCELLED_BY_CLIENT,
            AppointmentStatus.CANCELLED_BY_BARBER,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CANCELLED_BY_CLIENT: frozenset(),
    AppointmentStatus.CANCELLED_BY_BARBER: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not TRANSITIONS[AppointmentStatus(status)]


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return AppointmentStatus(target) in TRANSITIONS[AppointmentStatus(current)]


def ensure_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    error: ErrorCode = ErrorCode.APPOINTMENT_NOT_CANCELLABLE,
) -> None:
    """Raise ``error`` unless ``current -> target`` is a legal move."""
    if not can_transition(current, target):
        raise BookingError(error)
