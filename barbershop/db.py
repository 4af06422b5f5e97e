# barbershop/db.py

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from barbershop.config import Settings


def create_db_engine(settings: Settings) -> Engine:
    """Build the engine the application owns from startup to shutdown."""
    if settings.DATABASE_URL.startswith("sqlite"):
        # required for SQLite + FastAPI
        return create_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


def create_tables(engine: Engine) -> None:
    # registers every table on SQLModel.metadata
    import barbershop.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


# Dependency: one session per request
def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
