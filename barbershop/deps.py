# barbershop/deps.py

from fastapi import HTTPException, Request
from sqlmodel import Session

from barbershop.config import Settings
from barbershop.models import Employee


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_schedule_access(session: Session, user: dict, employee_id: int):
    """Admins manage every schedule; barbers only their own."""
    require_role(user, "admin", "barber")

    employee = session.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Barber not found")

    if user["role"] == "barber" and employee.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
