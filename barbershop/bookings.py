# barbershop/bookings.py
"""
Slot calculation and the reservation engine.

Slots are computed from materialized availability blocks minus the time
already held by appointments. Every write re-runs its own overlap and
daily-limit checks inside the transaction right before writing: the slot
list a client saw may be stale by the time it books.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Tuple

from sqlmodel import Session, select

from barbershop import repository
from barbershop.availability import ensure_materialized_employee_day
from barbershop.config import Settings, get_settings
from barbershop.core import overlaps_any, slot_grid
from barbershop.errors import (
    AppointmentCancelFailed,
    AppointmentNotCancelable,
    AppointmentNotFound,
    AppointmentNotReschedulable,
    AppointmentRescheduleFailed,
    ClientDailyLimit,
    ClientProfileNotFound,
    ServiceNotFound,
    SlotAlreadyTaken,
    SlotNotAvailable,
)
from barbershop.localtime import now_local, parse_start, to_aware
from barbershop.models import Appointment, Employee, EmployeeService, Service
from barbershop.repository import CANCELLED, PENDING
from barbershop.schemas import (
    AppointmentPublic,
    AppointmentService,
    AppointmentStatus,
    BarberPublic,
)

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = [AppointmentStatus.pending.value, AppointmentStatus.confirmed.value]
HISTORY_STATUSES = [AppointmentStatus.completed.value, AppointmentStatus.cancelled.value]
MAX_APPOINTMENTS_LIMIT = 200


class TimeSlot(NamedTuple):
    """Bookable slot, as aware datetimes in the business time zone."""
    start: datetime
    end: datetime


class _SlotGrid(NamedTuple):
    candidates: List[datetime]  # every grid start that fits a block
    free: List[datetime]  # candidates clear of appointments
    duration_minutes: int


def _compute_slot_grid(
    session: Session,
    service_id: int,
    employee_id: int,
    day: date,
    exclude_appointment_id: Optional[int],
    settings: Settings,
) -> _SlotGrid:
    ensure_materialized_employee_day(session, employee_id, day)

    # 1) Service duration
    service = repository.get_active_service(session, service_id)
    if service is None:
        raise ServiceNotFound()
    duration = service.duration_minutes

    # 2) Working blocks for the day
    blocks = repository.get_blocks(session, employee_id, day)

    # 3) Time already held by appointments
    occupied = repository.get_occupied_intervals(
        session, employee_id, day, exclude_appointment_id=exclude_appointment_id
    )

    # 4) Grid of candidate starts
    candidates = set()
    for block in blocks:
        candidates.update(
            slot_grid(block.start_at, block.end_at, duration, settings.SLOT_STEP_MINUTES)
        )
    ordered = sorted(candidates)

    # 5) Drop candidates that intersect an appointment
    length = timedelta(minutes=duration)
    free = [start for start in ordered if not overlaps_any(start, start + length, occupied)]

    return _SlotGrid(ordered, free, duration)


def get_availability_slots(
    session: Session,
    service_id: int,
    employee_id: int,
    day: date,
    exclude_appointment_id: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> List[TimeSlot]:
    settings = settings or get_settings()
    tz = settings.BUSINESS_TIMEZONE

    grid = _compute_slot_grid(session, service_id, employee_id, day, exclude_appointment_id, settings)
    length = timedelta(minutes=grid.duration_minutes)
    return [
        TimeSlot(to_aware(start, tz), to_aware(start + length, tz))
        for start in grid.free[:settings.SLOT_RESULT_LIMIT]
    ]


def _require_free_slot(
    session: Session,
    service_id: int,
    employee_id: int,
    start_at: datetime,
    exclude_appointment_id: Optional[int],
    settings: Settings,
) -> None:
    # no booking in the past (business wall clock)
    if start_at < now_local(settings.BUSINESS_TIMEZONE):
        raise SlotNotAvailable()

    grid = _compute_slot_grid(
        session, service_id, employee_id, start_at.date(), exclude_appointment_id, settings
    )
    if start_at in grid.free[:settings.SLOT_RESULT_LIMIT]:
        return
    # on the grid of a working block but held by another appointment
    if start_at in grid.candidates and start_at not in grid.free:
        raise SlotAlreadyTaken()
    raise SlotNotAvailable()


def _require_client_id(session: Session, user_id: int) -> int:
    client_id = repository.get_client_id(session, user_id)
    if client_id is None:
        raise ClientProfileNotFound()
    return client_id


def reserve_appointment(
    session: Session,
    user_id: int,
    employee_id: int,
    service_id: int,
    start,
    settings: Optional[Settings] = None,
) -> int:
    """Book ``start`` for the user's client profile; returns the new appointment id."""
    settings = settings or get_settings()

    # 1) Validate input before touching the database
    start_at = parse_start(start, settings.BUSINESS_TIMEZONE)

    # 2) Resolve the client profile
    client_id = _require_client_id(session, user_id)

    # 3) The requested start must be one of the current free slots
    _require_free_slot(session, service_id, employee_id, start_at, None, settings)

    # 4) Re-check and write in one transaction
    try:
        if repository.client_has_appointment_on(session, client_id, start_at.date()):
            raise ClientDailyLimit()

        service = repository.get_active_service(session, service_id)
        if service is None:
            raise ServiceNotFound()
        end_at = start_at + timedelta(minutes=service.duration_minutes)

        if repository.find_overlapping_appointment(session, employee_id, start_at, end_at) is not None:
            raise SlotAlreadyTaken()

        appointment = Appointment(
            client_id=client_id,
            employee_id=employee_id,
            service_id=service_id,
            start_at=start_at,
            end_at=end_at,
            status=PENDING,
        )
        session.add(appointment)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(appointment)
    logger.info(
        f"Reserved appointment {appointment.id}: client {client_id}, "
        f"employee {employee_id}, service {service_id}, {start_at}"
    )
    return appointment.id


def cancel_appointment(session: Session, appointment_id: int, user_id: int) -> None:
    client_id = repository.get_client_id(session, user_id)
    appointment = None
    if client_id is not None:
        appointment = repository.get_owned_appointment(session, appointment_id, client_id)
    if appointment is None:
        raise AppointmentNotFound()

    if appointment.status != PENDING:
        raise AppointmentNotCancelable()

    try:
        affected = repository.conditional_update(
            session,
            Appointment,
            [
                Appointment.id == appointment_id,
                Appointment.client_id == client_id,
                Appointment.status == PENDING,
            ],
            {"status": CANCELLED},
        )
        if affected == 0:
            raise AppointmentCancelFailed()
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Cancelled appointment {appointment_id} (client {client_id})")


def reschedule_appointment(
    session: Session,
    appointment_id: int,
    user_id: int,
    new_start,
    settings: Optional[Settings] = None,
) -> None:
    settings = settings or get_settings()

    start_at = parse_start(new_start, settings.BUSINESS_TIMEZONE)

    client_id = repository.get_client_id(session, user_id)
    appointment = None
    if client_id is not None:
        appointment = repository.get_owned_appointment(session, appointment_id, client_id)
    if appointment is None:
        raise AppointmentNotFound()

    if appointment.status != PENDING:
        raise AppointmentNotReschedulable()

    if appointment.start_at == start_at:
        return

    employee_id = appointment.employee_id
    service_id = appointment.service_id

    # the appointment must not block its own new time
    _require_free_slot(session, service_id, employee_id, start_at, appointment_id, settings)

    try:
        if repository.client_has_appointment_on(
            session, client_id, start_at.date(), exclude_appointment_id=appointment_id
        ):
            raise ClientDailyLimit()

        service = repository.get_active_service(session, service_id)
        if service is None:
            raise ServiceNotFound()
        end_at = start_at + timedelta(minutes=service.duration_minutes)

        overlapping = repository.find_overlapping_appointment(
            session, employee_id, start_at, end_at, exclude_appointment_id=appointment_id
        )
        if overlapping is not None:
            raise SlotAlreadyTaken()

        affected = repository.conditional_update(
            session,
            Appointment,
            [
                Appointment.id == appointment_id,
                Appointment.client_id == client_id,
                Appointment.status == PENDING,
            ],
            {"start_at": start_at, "end_at": end_at},
        )
        if affected == 0:
            raise AppointmentRescheduleFailed()
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Rescheduled appointment {appointment_id} to {start_at}")


# ----- catalog and client appointment list -----

def get_active_services(session: Session) -> List[Service]:
    return session.exec(
        select(Service)
        .where(Service.active == True)  # noqa: E712
        .order_by(Service.name)
    ).all()


def get_barbers_for_service(session: Session, service_id: int) -> List[Employee]:
    return session.exec(
        select(Employee)
        .join(EmployeeService, EmployeeService.employee_id == Employee.id)
        .where(EmployeeService.service_id == service_id)
        .where(Employee.active == True)  # noqa: E712
        .order_by(Employee.name)
    ).all()


def resolve_statuses(raw: Iterable[str], scope: str) -> Optional[List[str]]:
    """Status filter from query values ("pending,confirmed", "all", ...); None means no filter."""
    expanded = [
        value.strip().lower()
        for item in raw
        for value in item.split(",")
        if value.strip()
    ]
    if "all" in expanded:
        return None
    if expanded:
        return expanded
    return list(UPCOMING_STATUSES if scope == "upcoming" else HISTORY_STATUSES)


def get_appointments_for_user(
    session: Session,
    user_id: int,
    scope: str = "upcoming",
    statuses: Optional[List[str]] = None,
    limit: int = 100,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> List[AppointmentPublic]:
    settings = settings or get_settings()
    tz = settings.BUSINESS_TIMEZONE

    client_id = repository.get_client_id(session, user_id)
    if client_id is None:
        return []

    now = now or now_local(tz)
    limit = max(1, min(limit, MAX_APPOINTMENTS_LIMIT))

    stmt = (
        select(Appointment, Service, Employee)
        .join(Service, Service.id == Appointment.service_id)
        .join(Employee, Employee.id == Appointment.employee_id)
        .where(Appointment.client_id == client_id)
    )
    if scope == "upcoming":
        stmt = stmt.where(Appointment.start_at >= now).order_by(Appointment.start_at)
    else:
        stmt = stmt.where(Appointment.start_at < now).order_by(Appointment.start_at.desc())

    if statuses is not None:
        stmt = stmt.where(Appointment.status.in_(statuses))

    rows: List[Tuple[Appointment, Service, Employee]] = session.exec(stmt.limit(limit)).all()
    return [
        AppointmentPublic(
            id=appointment.id,
            start=to_aware(appointment.start_at, tz),
            end=to_aware(appointment.end_at, tz),
            status=appointment.status,
            service=AppointmentService(id=service.id, name=service.name, price=service.price),
            barber=BarberPublic(id=employee.id, name=employee.name),
        )
        for appointment, service, employee in rows
    ]
