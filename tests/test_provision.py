"""Tests for database provisioning."""

from sqlmodel import Session, select

from barbershop.auth import verify_password
from barbershop.models import Service, User
from barbershop.provision import DEFAULT_SERVICES, ensure_admin, provision, seed_services


class TestSeedServices:

    def test_seed_is_idempotent(self, session):
        assert seed_services(session) == len(DEFAULT_SERVICES)
        assert seed_services(session) == 0

        durations = {s.name: s.duration_minutes for s in session.exec(select(Service)).all()}
        assert durations == DEFAULT_SERVICES

    def test_existing_services_are_kept(self, session, haircut):
        haircut.duration_minutes = 40
        session.add(haircut)
        session.commit()

        assert seed_services(session) == len(DEFAULT_SERVICES) - 1
        assert session.get(Service, haircut.id).duration_minutes == 40


class TestAdmin:

    def test_admin_created_once(self, session):
        admin = ensure_admin(session, " Boss@Example.com", "admin-pass-123")

        assert admin.role == "admin"
        assert admin.email == "boss@example.com"
        assert verify_password("admin-pass-123", admin.password_hash)
        assert ensure_admin(session, "boss@example.com", "other-pass-123") is None

    def test_provision_uses_settings(self, engine, settings):
        settings.ADMIN_EMAIL = "boss@example.com"
        settings.ADMIN_PASSWORD = "admin-pass-123"

        provision(engine, settings)
        provision(engine, settings)

        with Session(engine) as session:
            admins = session.exec(select(User).where(User.role == "admin")).all()
            assert len(admins) == 1
            assert len(session.exec(select(Service)).all()) == len(DEFAULT_SERVICES)
