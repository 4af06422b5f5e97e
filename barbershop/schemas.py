# barbershop/schemas.py

from datetime import datetime, date, time
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Annotated

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

HHMM = Annotated[str, Field(pattern=HHMM_PATTERN)]


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    client = "client"
    barber = "barber"
    admin = "admin"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class ExceptionKind(str, Enum):
    off = "off"
    custom = "custom"


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.client
    name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    service_ids: List[int] = Field(default_factory=list)  # barbers only


# ----- availability -----

class WeeklyRule(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sunday ... 6=Saturday
    start_time: HHMM
    end_time: HHMM
    active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WeeklyRulesUpdate(BaseModel):
    employee_id: int = Field(gt=0)
    rules: List[WeeklyRule] = Field(max_length=60)
    materialize_days: int = Field(default=60, ge=1, le=120)
    from_date: Optional[date] = None


class WeeklyRulesResponse(BaseModel):
    rules: List[WeeklyRule]


class OffException(BaseModel):
    type: Literal["off"] = "off"
    date: date
    note: Optional[str] = Field(default=None, max_length=300)


class CustomException(BaseModel):
    type: Literal["custom"] = "custom"
    date: date
    start_time: HHMM
    end_time: HHMM
    note: Optional[str] = Field(default=None, max_length=300)

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


AvailabilityExceptionIn = Annotated[
    Union[OffException, CustomException],
    Field(discriminator="type"),
]


class ExceptionCreate(BaseModel):
    employee_id: int = Field(gt=0)
    exception: AvailabilityExceptionIn
    materialize_days: int = Field(default=60, ge=1, le=120)


class ExceptionsResponse(BaseModel):
    exceptions: List[AvailabilityExceptionIn]


class MaterializeResult(BaseModel):
    ok: bool = True
    materialized_days: int


class ExceptionCreated(BaseModel):
    ok: bool = True
    created: bool
    materialized_days: int


class SlotPublic(BaseModel):
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    slots: List[SlotPublic]


# ----- bookings -----

class ReservationCreate(BaseModel):
    service_id: int = Field(gt=0)
    barber_id: int = Field(gt=0)
    start: str


class ReservationResponse(BaseModel):
    appointment_id: int
    message: str = "Appointment booked"


class RescheduleRequest(BaseModel):
    start: str


class OkResponse(BaseModel):
    ok: bool = True


class ServicePublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    duration_minutes: int


class BarberPublic(BaseModel):
    id: int
    name: str


class AppointmentService(BaseModel):
    id: int
    name: str
    price: Optional[float] = None


class AppointmentPublic(BaseModel):
    id: int
    start: datetime
    end: datetime
    status: AppointmentStatus
    service: AppointmentService
    barber: BarberPublic


class AppointmentsResponse(BaseModel):
    appointments: List[AppointmentPublic]
