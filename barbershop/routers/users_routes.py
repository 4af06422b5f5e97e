# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Client, Employee, EmployeeService, Service, User
from barbershop.schemas import UserCreate, UserPublic, UserRole
from barbershop.auth import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "email": current_user["email"],
        "role": current_user["role"],
    }


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Public sign-up never grants admin
    if user.role == UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin accounts are provisioned, not registered")

    # 2) Check if email already exists
    email = user.email.strip().lower()
    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 3) Barbers may only offer services that exist
    service_ids = sorted(set(user.service_ids))
    if user.role == UserRole.barber and service_ids:
        found = session.exec(select(Service.id).where(Service.id.in_(service_ids))).all()
        if len(found) != len(service_ids):
            raise HTTPException(status_code=422, detail="Unknown service id")

    # 4) Create the user together with its client or barber profile
    db_user = User(
        email=email,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )
    try:
        session.add(db_user)
        session.flush()  # fills db_user.id

        if user.role == UserRole.client:
            session.add(Client(user_id=db_user.id, name=user.name, phone=user.phone))
        else:
            employee = Employee(user_id=db_user.id, name=user.name)
            session.add(employee)
            session.flush()
            for service_id in service_ids:
                session.add(EmployeeService(employee_id=employee.id, service_id=service_id))

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(db_user)
    logger.info(f"Registered {db_user.role} user {db_user.id}")

    # 5) Return public user
    return {
        "id": db_user.id,
        "email": db_user.email,
        "role": db_user.role,
    }
