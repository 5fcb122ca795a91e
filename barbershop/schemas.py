# barbershop/schemas.py

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    barber = "barber"
    client = "client"
    admin = "admin"


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole
    full_name: str = ""
    phone: Optional[str] = None


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.client
    full_name: str = Field(min_length=2, max_length=100)
    phone: Optional[str] = None


# ---- catalog ----

class ServicePublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    duration: int
    price: float
    active: bool


class ServiceCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = None
    duration: int = Field(gt=0)
    price: float = Field(ge=0)
    active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    active: Optional[bool] = None

    @field_validator("name", "duration", "price", "active")
    @classmethod
    def not_null(cls, v):
        # omit a field to keep it; only the description can be cleared
        if v is None:
            raise ValueError("cannot be null")
        return v


class BarberPublic(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None


class BarberServicesUpdate(BaseModel):
    service_ids: List[int]


# ---- schedules ----

class WorkingHoursDay(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Mon ... 6=Sun
    is_working: bool
    start_time: Optional[str] = Field(default=None, pattern=HHMM)
    end_time: Optional[str] = Field(default=None, pattern=HHMM)
    break_start: Optional[str] = Field(default=None, pattern=HHMM)
    break_end: Optional[str] = Field(default=None, pattern=HHMM)


class ShopHoursDay(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    is_open: bool
    start_time: Optional[str] = Field(default=None, pattern=HHMM)
    end_time: Optional[str] = Field(default=None, pattern=HHMM)
    break_start: Optional[str] = Field(default=None, pattern=HHMM)
    break_end: Optional[str] = Field(default=None, pattern=HHMM)


class TimeOffCreate(BaseModel):
    """Shop closure or barber absence. No times means the whole day."""

    date: date
    start_time: Optional[str] = Field(default=None, pattern=HHMM)
    end_time: Optional[str] = Field(default=None, pattern=HHMM)
    reason: Optional[str] = Field(default=None, max_length=500)


class TimeOffPublic(BaseModel):
    id: int
    date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


# ---- slots ----

class TimeSlot(BaseModel):
    time: str
    available: bool


class SlotsResponse(BaseModel):
    barber_id: int
    service_id: int
    date: date
    slots: List[TimeSlot]


# ---- appointments ----

class AppointmentCreate(BaseModel):
    service_id: int
    barber_id: int
    date: date
    start_time: str = Field(pattern=HHMM)


class GuestAppointmentCreate(AppointmentCreate):
    client_name: str = Field(min_length=2, max_length=100)
    client_phone: str


class PersonSummary(BaseModel):
    id: int
    full_name: str
    phone: Optional[str] = None


class BarberSummary(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration: int
    price: float


class AppointmentPublic(BaseModel):
    id: int
    client_id: Optional[int] = None
    guest_client_id: Optional[int] = None
    barber_id: int
    service_id: int
    date: date
    start_time: str
    end_time: str
    status: str
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    client: Optional[PersonSummary] = None
    guest_client: Optional[PersonSummary] = None
    barber: BarberSummary
    service: ServiceSummary


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class GuestPhone(BaseModel):
    phone: str


class CancellationStatus(BaseModel):
    can_cancel: bool
    warn_late: bool
