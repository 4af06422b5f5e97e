"""HTTP tests through FastAPI's TestClient: auth, catalog, availability and bookings."""

import pytest
from sqlmodel import select

from barbershop.auth import hash_password
from barbershop.models import Employee, User

PASSWORD = "secret-pass-123"


def register(api, email, role="client", name="Someone", **extra):
    return api.post("/users", json={"email": email, "password": PASSWORD, "role": role, "name": name, **extra})


def login(api, email):
    response = api.post("/auth/login", data={"username": email, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def shop(session, barber, haircut, working_week):
    """Ids of the seeded barber and service."""
    return {"barber_id": barber.id, "service_id": haircut.id}


@pytest.fixture
def client_headers(api):
    assert register(api, "ana@example.com", name="Ana").status_code == 201
    return login(api, "ana@example.com")


def reserve(api, headers, shop, start):
    return api.post(
        "/reservations",
        json={"service_id": shop["service_id"], "barber_id": shop["barber_id"], "start": start},
        headers=headers,
    )


class TestHealth:

    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestUsers:

    def test_register_login_me(self, api):
        response = register(api, "  Ana@Example.com ", name="Ana")
        assert response.status_code == 201
        assert response.json()["email"] == "ana@example.com"
        assert response.json()["role"] == "client"

        headers = login(api, "ana@example.com")
        me = api.get("/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["email"] == "ana@example.com"

    def test_duplicate_email(self, api):
        register(api, "ana@example.com")
        response = register(api, "ana@example.com")
        assert response.status_code == 409

    def test_admin_cannot_self_register(self, api):
        response = register(api, "boss@example.com", role="admin")
        assert response.status_code == 403

    def test_barber_with_unknown_service(self, api, shop):
        response = register(api, "tomas@example.com", role="barber", service_ids=[999])
        assert response.status_code == 422

    def test_wrong_password(self, api):
        register(api, "ana@example.com")
        response = api.post("/auth/login", data={"username": "ana@example.com", "password": "nope-nope"})
        assert response.status_code == 401

    def test_me_requires_token(self, api):
        assert api.get("/me").status_code == 401
        assert api.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


class TestCatalog:

    def test_services_and_barbers(self, api, shop):
        services = api.get("/services").json()
        assert [s["name"] for s in services] == ["Haircut"]
        assert services[0]["duration_minutes"] == 30

        barbers = api.get(f"/services/{shop['service_id']}/barbers").json()
        assert barbers == [{"id": shop["barber_id"], "name": "Tomás"}]


class TestAvailabilityEndpoints:

    def test_slots(self, api, shop):
        response = api.get(
            "/availability",
            params={"service_id": shop["service_id"], "barber_id": shop["barber_id"], "date": "2030-01-07"},
        )
        assert response.status_code == 200
        slots = response.json()["slots"]
        assert len(slots) == 6
        assert slots[0]["start"].startswith("2030-01-07T09:00:00")
        assert slots[0]["start"].endswith("-03:00")

    def test_unknown_service_maps_to_404(self, api, shop):
        response = api.get(
            "/availability",
            params={"service_id": 999, "barber_id": shop["barber_id"], "date": "2030-01-07"},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "SERVICE_NOT_FOUND"

    def test_barber_manages_own_schedule(self, api, session, shop):
        assert register(api, "tomas@example.com", role="barber", name="Tomás").status_code == 201
        headers = login(api, "tomas@example.com")
        own_id = session.exec(select(Employee.id).where(Employee.user_id != None)).one()  # noqa: E711

        payload = {
            "employee_id": own_id,
            "rules": [{"day_of_week": 1, "start_time": "10:00", "end_time": "14:00"}],
            "materialize_days": 7,
            "from_date": "2030-01-07",
        }
        response = api.put("/availability/weekly", json=payload, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "materialized_days": 7}

        rules = api.get("/availability/weekly", params={"employee_id": own_id}).json()["rules"]
        assert rules == [{"day_of_week": 1, "start_time": "10:00", "end_time": "14:00", "active": True}]

        # someone else's schedule
        payload["employee_id"] = shop["barber_id"]
        assert api.put("/availability/weekly", json=payload, headers=headers).status_code == 403

    def test_clients_cannot_edit_schedules(self, api, shop, client_headers):
        payload = {
            "employee_id": shop["barber_id"],
            "rules": [],
        }
        response = api.put("/availability/weekly", json=payload, headers=client_headers)
        assert response.status_code == 403

    def test_invalid_rule_window(self, api, shop, client_headers):
        payload = {
            "employee_id": shop["barber_id"],
            "rules": [{"day_of_week": 1, "start_time": "14:00", "end_time": "10:00"}],
        }
        response = api.put("/availability/weekly", json=payload, headers=client_headers)
        assert response.status_code == 422

    def test_exceptions_by_admin(self, api, session, shop):
        session.add(User(email="boss@example.com", password_hash=hash_password(PASSWORD), role="admin"))
        session.commit()
        headers = login(api, "boss@example.com")

        body = {
            "employee_id": shop["barber_id"],
            "exception": {"type": "off", "date": "2030-01-07", "note": "Holiday"},
            "materialize_days": 1,
        }
        first = api.post("/availability/exceptions", json=body, headers=headers)
        second = api.post("/availability/exceptions", json=body, headers=headers)
        assert first.status_code == 200
        assert first.json()["created"] is True
        assert second.json()["created"] is False

        listed = api.get(
            "/availability/exceptions",
            params={"employee_id": shop["barber_id"], "from_date": "2030-01-01", "to_date": "2030-01-31"},
        ).json()["exceptions"]
        assert listed == [{"type": "off", "date": "2030-01-07", "note": "Holiday"}]

        slots = api.get(
            "/availability",
            params={"service_id": shop["service_id"], "barber_id": shop["barber_id"], "date": "2030-01-07"},
        ).json()["slots"]
        assert slots == []

    def test_exception_range_must_be_ordered(self, api, shop):
        response = api.get(
            "/availability/exceptions",
            params={"employee_id": shop["barber_id"], "from_date": "2030-02-01", "to_date": "2030-01-01"},
        )
        assert response.status_code == 422

    def test_unknown_exception_type(self, api, shop, client_headers):
        body = {"employee_id": shop["barber_id"], "exception": {"type": "vacation", "date": "2030-01-07"}}
        response = api.post("/availability/exceptions", json=body, headers=client_headers)
        assert response.status_code == 422


class TestBookingEndpoints:

    def test_reserve_then_list(self, api, shop, client_headers):
        response = reserve(api, client_headers, shop, "2030-01-07T09:00:00-03:00")
        assert response.status_code == 201
        appointment_id = response.json()["appointment_id"]

        listed = api.get("/appointments", headers=client_headers).json()["appointments"]
        assert [a["id"] for a in listed] == [appointment_id]
        assert listed[0]["status"] == "pending"
        assert listed[0]["service"]["name"] == "Haircut"

        slots = api.get(
            "/availability",
            params={"service_id": shop["service_id"], "barber_id": shop["barber_id"], "date": "2030-01-07"},
        ).json()["slots"]
        assert len(slots) == 5

    def test_reservation_requires_login(self, api, shop):
        response = reserve(api, {}, shop, "2030-01-07T09:00:00")
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "start, status, code",
        [
            ("whenever", 400, "INVALID_START"),
            ("2030-01-07T13:00:00", 409, "SLOT_NOT_AVAILABLE"),
        ],
    )
    def test_rejections(self, api, shop, client_headers, start, status, code):
        response = reserve(api, client_headers, shop, start)
        assert response.status_code == status
        assert response.json()["code"] == code

    def test_taken_and_daily_limit(self, api, shop, client_headers):
        assert reserve(api, client_headers, shop, "2030-01-07T09:00:00").status_code == 201

        register(api, "bruno@example.com", name="Bruno")
        bruno = login(api, "bruno@example.com")
        taken = reserve(api, bruno, shop, "2030-01-07T09:00:00")
        assert taken.status_code == 409
        assert taken.json()["code"] == "SLOT_ALREADY_TAKEN"

        limit = reserve(api, client_headers, shop, "2030-01-07T10:00:00")
        assert limit.status_code == 409
        assert limit.json()["code"] == "CLIENT_DAILY_LIMIT"

    def test_barber_has_no_client_profile(self, api, shop):
        register(api, "tomas@example.com", role="barber")
        headers = login(api, "tomas@example.com")
        response = reserve(api, headers, shop, "2030-01-07T09:00:00")
        assert response.status_code == 404
        assert response.json()["code"] == "CLIENT_PROFILE_NOT_FOUND"

    def test_cancel_and_reschedule(self, api, shop, client_headers):
        appointment_id = reserve(api, client_headers, shop, "2030-01-07T09:00:00").json()["appointment_id"]

        moved = api.post(
            f"/appointments/{appointment_id}/reschedule",
            json={"start": "2030-01-07T11:00:00"},
            headers=client_headers,
        )
        assert moved.status_code == 200
        assert moved.json() == {"ok": True}

        listed = api.get("/appointments", headers=client_headers).json()["appointments"]
        assert listed[0]["start"].startswith("2030-01-07T11:00:00")

        cancelled = api.post(f"/appointments/{appointment_id}/cancel", headers=client_headers)
        assert cancelled.json() == {"ok": True}

        again = api.post(f"/appointments/{appointment_id}/cancel", headers=client_headers)
        assert again.status_code == 409
        assert again.json()["code"] == "APPOINTMENT_NOT_CANCELABLE"

        history = api.get(
            "/appointments", params={"status": "all"}, headers=client_headers
        ).json()["appointments"]
        assert history[0]["status"] == "cancelled"

        late = api.post(
            f"/appointments/{appointment_id}/reschedule",
            json={"start": "2030-01-07T10:00:00"},
            headers=client_headers,
        )
        assert late.status_code == 409
        assert late.json()["code"] == "APPOINTMENT_NOT_RESCHEDULABLE"

    def test_unknown_appointment(self, api, shop, client_headers):
        response = api.post("/appointments/4242/cancel", headers=client_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "APPOINTMENT_NOT_FOUND"

    def test_limit_is_bounded(self, api, client_headers):
        response = api.get("/appointments", params={"limit": 500}, headers=client_headers)
        assert response.status_code == 422
