# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop import bookings
from barbershop.db import get_session
from barbershop.schemas import BarberPublic, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return bookings.get_active_services(session)


@router.get("/{service_id}/barbers", response_model=List[BarberPublic])
def list_barbers_for_service(service_id: int, session: Session = Depends(get_session)):
    return bookings.get_barbers_for_service(session, service_id)
