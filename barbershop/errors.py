# barbershop/errors.py

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    # booking
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    SLOT_IN_PAST = "SLOT_IN_PAST"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"
    BARBER_UNAVAILABLE = "BARBER_UNAVAILABLE"
    SHOP_CLOSED = "SHOP_CLOSED"
    SLOT_OCCUPIED = "SLOT_OCCUPIED"
    # cancellation / no-show
    APPOINTMENT_NOT_FOUND = "APPOINTMENT_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    APPOINTMENT_NOT_CANCELLABLE = "APPOINTMENT_NOT_CANCELLABLE"
    APPOINTMENT_IN_PAST = "APPOINTMENT_IN_PAST"
    GUEST_NOT_FOUND = "GUEST_NOT_FOUND"
    CANCELLATION_REASON_REQUIRED = "CANCELLATION_REASON_REQUIRED"
    APPOINTMENT_NOT_MARKABLE = "APPOINTMENT_NOT_MARKABLE"
    APPOINTMENT_NOT_STARTED = "APPOINTMENT_NOT_STARTED"


MESSAGES = {
    ErrorCode.SERVICE_NOT_FOUND: "Service not found",
    ErrorCode.SLOT_IN_PAST: "Cannot book a time that has already passed",
    ErrorCode.SLOT_UNAVAILABLE: "Start time is not on the barber's slot grid",
    ErrorCode.BARBER_UNAVAILABLE: "Barber is not available at that time",
    ErrorCode.SHOP_CLOSED: "The shop is closed at that time",
    ErrorCode.SLOT_OCCUPIED: "This time slot is already taken",
    ErrorCode.APPOINTMENT_NOT_FOUND: "Appointment not found",
    ErrorCode.UNAUTHORIZED: "You are not allowed to change this appointment",
    ErrorCode.APPOINTMENT_NOT_CANCELLABLE: "Appointment can no longer be cancelled",
    ErrorCode.APPOINTMENT_IN_PAST: "Appointment is in the past",
    ErrorCode.GUEST_NOT_FOUND: "No guest booking found for this phone",
    ErrorCode.CANCELLATION_REASON_REQUIRED: "A cancellation reason is required",
    ErrorCode.APPOINTMENT_NOT_MARKABLE: "Only confirmed appointments can be marked as no-show",
    ErrorCode.APPOINTMENT_NOT_STARTED: "No-show can only be marked after the appointment ends",
}

HTTP_STATUS = {
    ErrorCode.SERVICE_NOT_FOUND: 404,
    ErrorCode.SLOT_IN_PAST: 400,
    ErrorCode.SLOT_UNAVAILABLE: 409,
    ErrorCode.BARBER_UNAVAILABLE: 409,
    ErrorCode.SHOP_CLOSED: 409,
    ErrorCode.SLOT_OCCUPIED: 409,
    ErrorCode.APPOINTMENT_NOT_FOUND: 404,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.APPOINTMENT_NOT_CANCELLABLE: 400,
    ErrorCode.APPOINTMENT_IN_PAST: 400,
    ErrorCode.GUEST_NOT_FOUND: 404,
    ErrorCode.CANCELLATION_REASON_REQUIRED: 422,
    ErrorCode.APPOINTMENT_NOT_MARKABLE: 409,
    ErrorCode.APPOINTMENT_NOT_STARTED: 412,
}


class BookingError(Exception):
    """A named scheduling rule violation. The HTTP layer maps ``code`` to a status."""

    def __init__(self, code: ErrorCode, detail: Optional[str] = None):
        self.code = code
        self.detail = detail or MESSAGES[code]
        super().__init__(f"{code.value}: {self.detail}")

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.code]
