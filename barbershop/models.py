# barbershop/models.py

from dataclasses import dataclass
from datetime import datetime, date as Date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field, Relationship

from .scheduling.status import AppointmentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# one confirmed appointment per (barber, date, start_time)
CONFIRMED_SLOT_INDEX = "uq_appointment_confirmed_start"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # client, barber or admin
    full_name: str = ""
    phone: Optional[str] = None


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)
    name: str
    avatar_url: Optional[str] = None
    active: bool = True


class GuestClient(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    phone: str = Field(index=True, unique=True)  # digits only
    created_at: datetime = Field(default_factory=utcnow)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    duration: int  # minutes
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    active: bool = True


class BarberService(SQLModel, table=True):
    barber_id: int = Field(foreign_key="barber.id", primary_key=True)
    service_id: int = Field(foreign_key="service.id", primary_key=True)


class WorkingHours(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_barber_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: int  # 0=Mon ... 6=Sun
    start_time: str
    end_time: str
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class ShopHours(SQLModel, table=True):
    day_of_week: int = Field(primary_key=True)  # 0=Mon ... 6=Sun
    is_open: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class ShopClosure(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    date: Date = Field(index=True)
    # both None = closed all day
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


class BarberAbsence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    # both None = absent all day
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


class OwnerKind(str, Enum):
    client = "client"
    guest = "guest"


@dataclass(frozen=True)
class AppointmentOwner:
    kind: OwnerKind
    id: int

    @classmethod
    def client(cls, client_id: int) -> "AppointmentOwner":
        return cls(OwnerKind.client, client_id)

    @classmethod
    def guest(cls, guest_client_id: int) -> "AppointmentOwner":
        return cls(OwnerKind.guest, guest_client_id)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint(
            "(client_id IS NULL) <> (guest_client_id IS NULL)",
            name="ck_appointment_single_owner",
        ),
        # last line behind the in-transaction overlap check
        Index(
            CONFIRMED_SLOT_INDEX,
            "barber_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'CONFIRMED'"),
            postgresql_where=text("status = 'CONFIRMED'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    guest_client_id: Optional[int] = Field(default=None, foreign_key="guestclient.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    date: Date = Field(index=True)
    start_time: str
    end_time: str
    status: AppointmentStatus = Field(default=AppointmentStatus.CONFIRMED, index=True)
    cancel_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    client: Optional[User] = Relationship()
    guest_client: Optional[GuestClient] = Relationship()
    barber: Optional[Barber] = Relationship()
    service: Optional[Service] = Relationship()

    @property
    def owner(self) -> AppointmentOwner:
        if self.client_id is not None:
            return AppointmentOwner.client(self.client_id)
        return AppointmentOwner.guest(self.guest_client_id)

    def set_owner(self, owner: AppointmentOwner) -> None:
        if owner.kind == OwnerKind.client:
            self.client_id, self.guest_client_id = owner.id, None
        else:
            self.client_id, self.guest_client_id = None, owner.id
