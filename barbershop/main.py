# barbershop/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from barbershop.config import Settings, get_settings
from barbershop.db import create_db_engine
from barbershop.errors import BookingError
from barbershop.logging_config import setup_logging
from barbershop.routers import (
    appointments_routes,
    auth_routes,
    availability_routes,
    services_routes,
    users_routes,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "INVALID_START": 400,
    "CLIENT_PROFILE_NOT_FOUND": 404,
    "SERVICE_NOT_FOUND": 404,
    "APPOINTMENT_NOT_FOUND": 404,
    "SLOT_NOT_AVAILABLE": 409,
    "SLOT_ALREADY_TAKEN": 409,
    "CLIENT_DAILY_LIMIT": 409,
    "APPOINTMENT_NOT_CANCELABLE": 409,
    "APPOINTMENT_NOT_RESCHEDULABLE": 409,
    "APPOINTMENT_CANCEL_FAILED": 409,
    "APPOINTMENT_RESCHEDULE_FAILED": 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)

    owns_engine = app.state.engine is None
    if owns_engine:
        app.state.engine = create_db_engine(settings)
    logger.info("Barbershop booking API starting up")

    yield

    if owns_engine:
        app.state.engine.dispose()
        app.state.engine = None
    logger.info("Barbershop booking API shutting down")


async def booking_error_handler(request: Request, exc: BookingError):
    status_code = ERROR_STATUS.get(exc.code, 400)
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "detail": exc.detail},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API; ``engine`` is created at startup unless one is handed in."""
    app = FastAPI(title="Barbershop Booking API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings or get_settings()
    app.state.engine = engine

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(services_routes.router)
    app.include_router(availability_routes.router)
    app.include_router(appointments_routes.router)

    return app


app = create_app()
