# barbershop/repository.py
"""
Queries the availability and reservation engine runs against the database.

``conditional_update`` is the compare-and-set primitive: status-guarded
updates report how many rows they touched instead of failing loudly, and
callers turn a zero into the matching ``*Failed`` booking error.
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from barbershop.localtime import day_bounds
from barbershop.models import Appointment, AvailabilityBlock, Client, Service

PENDING = "pending"
CANCELLED = "cancelled"

# statuses that hold the employee's time
OCCUPYING_STATUSES = ("pending", "confirmed")


def conditional_update(session: Session, model, criteria: Iterable[Any], values: Dict[str, Any]) -> int:
    """UPDATE model SET values WHERE criteria; returns the affected row count."""
    statement = (
        update(model)
        .where(*criteria)
        .values(**values)
        .execution_options(synchronize_session="evaluate")
    )
    result = session.exec(statement)
    return result.rowcount


def get_client_id(session: Session, user_id: int) -> Optional[int]:
    return session.exec(
        select(Client.id).where(Client.user_id == user_id)
    ).first()


def get_active_service(session: Session, service_id: int) -> Optional[Service]:
    return session.exec(
        select(Service)
        .where(Service.id == service_id)
        .where(Service.active == True)  # noqa: E712
    ).first()


def get_owned_appointment(session: Session, appointment_id: int, client_id: int) -> Optional[Appointment]:
    return session.exec(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .where(Appointment.client_id == client_id)
    ).first()


def get_blocks(session: Session, employee_id: int, day: date) -> List[AvailabilityBlock]:
    return session.exec(
        select(AvailabilityBlock)
        .where(AvailabilityBlock.employee_id == employee_id)
        .where(AvailabilityBlock.date == day)
        .order_by(AvailabilityBlock.start_at)
    ).all()


def has_blocks(session: Session, employee_id: int, day: date) -> bool:
    found = session.exec(
        select(AvailabilityBlock.id)
        .where(AvailabilityBlock.employee_id == employee_id)
        .where(AvailabilityBlock.date == day)
        .limit(1)
    ).first()
    return found is not None


def get_occupied_intervals(
    session: Session,
    employee_id: int,
    day: date,
    exclude_appointment_id: Optional[int] = None,
) -> List[Tuple[datetime, datetime]]:
    day_start, day_end = day_bounds(day)
    stmt = (
        select(Appointment)
        .where(Appointment.employee_id == employee_id)
        .where(Appointment.start_at >= day_start)
        .where(Appointment.start_at < day_end)
        .where(Appointment.status.in_(OCCUPYING_STATUSES))
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    return [(a.start_at, a.end_at) for a in session.exec(stmt).all()]


def find_overlapping_appointment(
    session: Session,
    employee_id: int,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.employee_id == employee_id)
        .where(Appointment.status.in_(OCCUPYING_STATUSES))
        .where(Appointment.start_at < end)
        .where(Appointment.end_at > start)
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    return session.exec(stmt.limit(1)).first()


def client_has_appointment_on(
    session: Session,
    client_id: int,
    day: date,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    day_start, day_end = day_bounds(day)
    stmt = (
        select(Appointment.id)
        .where(Appointment.client_id == client_id)
        .where(Appointment.start_at >= day_start)
        .where(Appointment.start_at < day_end)
        .where(Appointment.status != CANCELLED)
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    return session.exec(stmt.limit(1)).first() is not None
