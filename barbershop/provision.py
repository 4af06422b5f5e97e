# barbershop/provision.py
"""
One-off database provisioning: tables, the service catalog and the admin.

Run with ``python -m barbershop.provision``. Safe to run more than once.
"""
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from barbershop.auth import hash_password
from barbershop.config import Settings, get_settings
from barbershop.db import create_db_engine, create_tables
from barbershop.logging_config import setup_logging
from barbershop.models import Service, User

logger = logging.getLogger(__name__)

# name -> duration in minutes
DEFAULT_SERVICES = {
    "Shape up": 15,
    "Beard trim": 15,
    "Haircut": 30,
    "Fade": 30,
    "Scissors cut": 30,
    "Cut and beard": 45,
}


def seed_services(session: Session) -> int:
    """Insert the catalog services that are missing; returns how many were added."""
    existing = set(session.exec(select(Service.name)).all())

    added = 0
    for name, duration in DEFAULT_SERVICES.items():
        if name in existing:
            continue
        session.add(Service(name=name, duration_minutes=duration))
        added += 1

    session.commit()
    return added


def ensure_admin(session: Session, email: str, password: str) -> Optional[User]:
    """Create the admin account; returns None when the email is already taken."""
    email = email.strip().lower()
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing is not None:
        logger.info(f"Admin user already exists: {email}")
        return None

    admin = User(email=email, password_hash=hash_password(password), role="admin")
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info(f"Admin user created: {email}")
    return admin


def provision(engine: Engine, settings: Settings) -> None:
    create_tables(engine)

    with Session(engine) as session:
        added = seed_services(session)
        logger.info(f"Seeded {added} services")

        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            ensure_admin(session, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        else:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin account")


def main():
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)

    engine = create_db_engine(settings)
    try:
        provision(engine, settings)
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
