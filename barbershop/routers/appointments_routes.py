# barbershop/routers/appointments_routes.py

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlmodel import Session

from barbershop import bookings
from barbershop.auth import get_current_user
from barbershop.config import Settings
from barbershop.db import get_session
from barbershop.deps import get_app_settings
from barbershop.schemas import (
    AppointmentsResponse,
    OkResponse,
    RescheduleRequest,
    ReservationCreate,
    ReservationResponse,
)

router = APIRouter(
    tags=["appointments"],
)


@router.post("/reservations", response_model=ReservationResponse, status_code=201)
def create_reservation(
    payload: ReservationCreate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    current_user: dict = Depends(get_current_user),
):
    appointment_id = bookings.reserve_appointment(
        session,
        user_id=current_user["id"],
        employee_id=payload.barber_id,
        service_id=payload.service_id,
        start=payload.start,
        settings=settings,
    )
    return {"appointment_id": appointment_id}


@router.get("/appointments", response_model=AppointmentsResponse)
def list_my_appointments(
    scope: Literal["upcoming", "history"] = "upcoming",
    status: Optional[List[str]] = Query(default=None),
    limit: int = Query(default=100, gt=0, le=200),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    current_user: dict = Depends(get_current_user),
):
    statuses = bookings.resolve_statuses(status or [], scope)
    appointments = bookings.get_appointments_for_user(
        session,
        current_user["id"],
        scope=scope,
        statuses=statuses,
        limit=limit,
        settings=settings,
    )
    return {"appointments": appointments}


@router.post("/appointments/{appointment_id}/cancel", response_model=OkResponse)
def cancel_appointment(
    appointment_id: int = Path(gt=0),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    bookings.cancel_appointment(session, appointment_id, current_user["id"])
    return {"ok": True}


@router.post("/appointments/{appointment_id}/reschedule", response_model=OkResponse)
def reschedule_appointment(
    payload: RescheduleRequest,
    appointment_id: int = Path(gt=0),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    current_user: dict = Depends(get_current_user),
):
    bookings.reschedule_appointment(
        session, appointment_id, current_user["id"], payload.start, settings=settings
    )
    return {"ok": True}
