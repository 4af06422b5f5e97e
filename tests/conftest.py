"""Shared fixtures: in-memory database, seeded catalog and an API client."""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from barbershop.availability import set_weekly_rules
from barbershop.config import Settings
from barbershop.db import create_tables
from barbershop.main import create_app
from barbershop.models import Client, Employee, EmployeeService, Service, User
from barbershop.schemas import WeeklyRule

TZ = "America/Argentina/Buenos_Aires"

# Monday and Tuesday far enough in the future to always be "upcoming"
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        BUSINESS_TIMEZONE=TZ,
        SLOT_STEP_MINUTES=30,
        SLOT_RESULT_LIMIT=240,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def barber(session):
    employee = Employee(name="Tomás")
    session.add(employee)
    session.commit()
    session.refresh(employee)
    return employee


@pytest.fixture
def haircut(session, barber):
    service = Service(name="Haircut", duration_minutes=30, price=12000.0)
    session.add(service)
    session.commit()
    session.refresh(service)
    session.add(EmployeeService(employee_id=barber.id, service_id=service.id))
    session.commit()
    return service


@pytest.fixture
def make_client(session):
    """Factory: a user with a client profile; returns the user."""

    def _make(email: str):
        user = User(email=email, password_hash="not-used", role="client")
        session.add(user)
        session.flush()
        session.add(Client(user_id=user.id, name=email.split("@")[0]))
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def client_user(make_client):
    return make_client("ana@example.com")


@pytest.fixture
def working_week(session, barber):
    """Mondays and Tuesdays 09:00-12:00."""
    set_weekly_rules(session, barber.id, [
        WeeklyRule(day_of_week=1, start_time="09:00", end_time="12:00"),
        WeeklyRule(day_of_week=2, start_time="09:00", end_time="12:00"),
    ])


@pytest.fixture
def api(settings, engine):
    app = create_app(settings, engine)
    with TestClient(app) as client:
        yield client
