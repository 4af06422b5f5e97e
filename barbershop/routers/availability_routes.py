# barbershop/routers/availability_routes.py

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from barbershop import availability
from barbershop.auth import get_current_user
from barbershop.bookings import get_availability_slots
from barbershop.config import Settings
from barbershop.db import get_session
from barbershop.deps import get_app_settings, require_schedule_access
from barbershop.schemas import (
    AvailabilityResponse,
    ExceptionCreate,
    ExceptionCreated,
    ExceptionsResponse,
    MaterializeResult,
    WeeklyRulesResponse,
    WeeklyRulesUpdate,
)

router = APIRouter(
    prefix="/availability",
    tags=["availability"],
)


@router.get("", response_model=AvailabilityResponse)
def availability_slots(
    service_id: int = Query(gt=0),
    barber_id: int = Query(gt=0),
    date: date = Query(),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    slots = get_availability_slots(session, service_id, barber_id, date, settings=settings)
    return {"slots": [{"start": slot.start, "end": slot.end} for slot in slots]}


@router.get("/weekly", response_model=WeeklyRulesResponse)
def get_weekly_rules(
    employee_id: int = Query(gt=0),
    session: Session = Depends(get_session),
):
    rules = availability.get_weekly_rules(session, employee_id)
    return {"rules": [availability.rule_to_schema(rule) for rule in rules]}


@router.put("/weekly", response_model=MaterializeResult)
def put_weekly_rules(
    payload: WeeklyRulesUpdate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    current_user: dict = Depends(get_current_user),
):
    require_schedule_access(session, current_user, payload.employee_id)

    materialized = availability.apply_weekly_rules(
        session,
        payload.employee_id,
        payload.rules,
        settings,
        from_date=payload.from_date,
        days=payload.materialize_days,
    )
    return {"ok": True, "materialized_days": materialized}


@router.get("/exceptions", response_model=ExceptionsResponse)
def get_exceptions(
    employee_id: int = Query(gt=0),
    from_date: date = Query(),
    to_date: date = Query(),
    session: Session = Depends(get_session),
):
    if from_date > to_date:
        raise HTTPException(status_code=422, detail="from_date cannot be after to_date")

    rows = availability.list_exceptions(session, employee_id, from_date, to_date)
    return {"exceptions": [availability.exception_to_schema(row) for row in rows]}


@router.post("/exceptions", response_model=ExceptionCreated)
def post_exception(
    payload: ExceptionCreate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    current_user: dict = Depends(get_current_user),
):
    require_schedule_access(session, current_user, payload.employee_id)

    created, materialized = availability.record_exception(
        session,
        payload.employee_id,
        payload.exception,
        settings,
        days=payload.materialize_days,
    )
    return {"ok": True, "created": created, "materialized_days": materialized}
