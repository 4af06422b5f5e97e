# barbershop/models.py

from typing import Optional
from datetime import date as Date, time

from pydantic import NaiveDatetime
from sqlalchemy import Index, UniqueConstraint
from sqlmodel import SQLModel, Field

from barbershop.localtime import utc_now


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # client, barber or admin


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True, index=True)
    name: str
    phone: Optional[str] = None


class Employee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", unique=True)
    name: str
    active: bool = True


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    description: Optional[str] = None
    price: Optional[float] = None
    duration_minutes: int
    active: bool = True


class EmployeeService(SQLModel, table=True):
    employee_id: int = Field(foreign_key="employee.id", primary_key=True)
    service_id: int = Field(foreign_key="service.id", primary_key=True)


class WeeklyRule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    day_of_week: int  # 0=Sunday ... 6=Saturday
    start_time: time
    end_time: time
    active: bool = True


class AvailabilityException(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "date", "kind", name="uq_exception_employee_date_kind"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    date: Date = Field(index=True)
    kind: str  # "off" or "custom"
    start_time: Optional[time] = None  # custom only
    end_time: Optional[time] = None  # custom only
    note: Optional[str] = None


class AvailabilityBlock(SQLModel, table=True):
    """Materialized working window; written only by the materializer."""

    __table_args__ = (
        Index("ix_block_employee_date", "employee_id", "date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id")
    date: Date
    # naive wall-clock timestamps in the business time zone
    start_at: NaiveDatetime
    end_at: NaiveDatetime


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("ix_appointment_employee_start", "employee_id", "start_at"),
        Index("ix_appointment_client_start", "client_id", "start_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="client.id")
    employee_id: int = Field(foreign_key="employee.id")
    service_id: int = Field(foreign_key="service.id")

    # naive wall-clock timestamps in the business time zone
    start_at: NaiveDatetime
    end_at: NaiveDatetime
    status: str = "pending"  # pending, confirmed, cancelled, completed

    # naive UTC
    created_at: NaiveDatetime = Field(default_factory=utc_now)
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
    )
