import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from rideops.core.database import get_db
from rideops.core.dependencies import get_email_sender, get_identity
from rideops.core.init_db import SchemaCapabilities
from rideops.core.security import create_access_token
from rideops.main import app
from rideops.models.driver import Driver
from rideops.models.user import User


def auth_header(identity_id, role):
    token = create_access_token({"sub": identity_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


ADMIN = auth_header("admin-1", "admin")


@pytest_asyncio.fixture
async def client(db, identity, email_sender):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.state.capabilities = SchemaCapabilities()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def test_contact_request_to_driver_account(client, db, identity, email_sender):
    response = await client.post(
        "/api/v1/contact-requests",
        json={
            "name": "  Nina Newdriver ",
            "email": "nina@example.com",
            "phone": "+1 (555) 010-0200",
            "userType": "driver",
            "message": "Own car, 5 years experience",
        },
    )
    assert response.status_code == 201
    request_id = response.json()["id"]

    pending = await client.get("/api/v1/admin/contact-requests/count", headers=ADMIN)
    assert pending.json() == {"count": 1}

    listed = await client.get("/api/v1/admin/contact-requests", params={"status": "Pending"}, headers=ADMIN)
    assert listed.json()[0]["name"] == "Nina Newdriver"
    assert listed.json()[0]["phone"] == "+15550100200"

    decided = await client.put(
        f"/api/v1/admin/contact-requests/{request_id}",
        json={"decision": "approve", "adminNotes": "welcome", "createAccount": True},
        headers=ADMIN,
    )
    assert decided.status_code == 200
    body = decided.json()
    assert body["account_created"] is True
    assert body["email"]["to"] == "nina@example.com"

    driver = (await db.execute(select(Driver))).scalar_one()
    assert driver.user_id == body["identity_id"]
    assert email_sender.sent[0]["email"] == "nina@example.com"

    again = await client.put(
        f"/api/v1/admin/contact-requests/{request_id}",
        json={"decision": "approve", "createAccount": True},
        headers=ADMIN,
    )
    assert again.status_code == 409


async def test_contact_request_validation(client):
    response = await client.post(
        "/api/v1/contact-requests",
        json={"name": "X", "email": "not-an-email", "phone": "12", "userType": "admin"},
    )
    assert response.status_code == 422


async def test_admin_routes_require_admin(client, customer):
    assert (await client.get("/api/v1/admin/contact-requests")).status_code == 401
    assert (
        await client.get("/api/v1/admin/contact-requests", headers={"Authorization": "Bearer garbage"})
    ).status_code == 401

    forbidden = await client.get(
        "/api/v1/admin/contact-requests", headers=auth_header(customer.user_id, "customer")
    )
    assert forbidden.status_code == 403


async def test_unknown_contact_request_is_404(client):
    response = await client.put(
        "/api/v1/admin/contact-requests/999",
        json={"decision": "reject"},
        headers=ADMIN,
    )
    assert response.status_code == 404


async def test_driver_patch_drops_notes_in_progress(client, driver, make_ride):
    ride = await make_ride(status="In Progress")

    response = await client.patch(
        f"/api/v1/driver/rides/{ride.id}",
        json={"current_location": "Bridge", "driver_notes": "slow"},
        headers=auth_header(driver.user_id, "driver"),
    )

    assert response.status_code == 200
    assert response.json()["current_location"] == "Bridge"
    assert response.json()["driver_notes"] is None


async def test_driver_cannot_send_customer_fields(client, driver, make_ride):
    ride = await make_ride()
    response = await client.patch(
        f"/api/v1/driver/rides/{ride.id}",
        json={"price": 1.0},
        headers=auth_header(driver.user_id, "driver"),
    )
    assert response.status_code == 422


async def test_customer_patch_on_foreign_ride_is_404(client, other_customer, make_ride):
    ride = await make_ride(status="Pending")

    response = await client.patch(
        f"/api/v1/customer/rides/{ride.id}",
        json={"passengers": 3},
        headers=auth_header(other_customer.user_id, "customer"),
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Ride not found or unauthorized"


async def test_customer_patch_closed_ride_is_400(client, customer, make_ride):
    ride = await make_ride(status="Completed")
    response = await client.patch(
        f"/api/v1/customer/rides/{ride.id}",
        json={"special_requirements": "umbrella"},
        headers=auth_header(customer.user_id, "customer"),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot update completed or cancelled rides"


async def test_customer_ride_hides_admin_notes(client, customer, make_ride):
    await make_ride(admin_notes="VIP, do not overbook")
    response = await client.get("/api/v1/customer/rides", headers=auth_header(customer.user_id, "customer"))
    assert response.status_code == 200
    assert "admin_notes" not in response.json()[0]
    assert response.json()[0]["customer"]["name"] == "Carl Customer"


async def test_customer_without_profile_is_forbidden(client):
    response = await client.get("/api/v1/customer/rides", headers=auth_header("ghost", "customer"))
    assert response.status_code == 403


async def test_login_uses_role_flag(client, db, identity):
    account = identity.add("ops@example.com", password="S3cret-pass")
    db.add(User(id=account.id, email=account.email, role="admin"))
    await db.commit()

    response = await client.post(
        "/api/v1/auth/login", json={"email": "ops@example.com", "password": "S3cret-pass"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["role"] == "admin"

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"user_id": account.id, "role": "admin", "profile_id": None}


@pytest.mark.parametrize("password", ["wrong", ""])
async def test_login_rejects_bad_password(client, identity, password):
    identity.add("ops@example.com", password="S3cret-pass", user_type="driver")
    response = await client.post("/api/v1/auth/login", json={"email": "ops@example.com", "password": password})
    assert response.status_code == 401


@pytest.mark.parametrize("body", [{"pickup_date": None}, {"passengers": None}, {"pickup_time": None}])
async def test_customer_patch_null_is_422_and_ride_untouched(client, db, customer, make_ride, body):
    ride = await make_ride()
    response = await client.patch(
        f"/api/v1/customer/rides/{ride.id}",
        json=body,
        headers=auth_header(customer.user_id, "customer"),
    )
    assert response.status_code == 422

    listed = await client.get("/api/v1/customer/rides", headers=auth_header(customer.user_id, "customer"))
    assert listed.status_code == 200
    assert listed.json()[0]["pickup_date"] == "2026-11-02"
    assert listed.json()[0]["passengers"] == 2


@pytest.mark.parametrize("body", [{"pickup_date": None}, {"passengers": None}, {"price": None}, {"status": None}])
async def test_admin_patch_null_is_422(client, make_ride, body):
    ride = await make_ride()
    response = await client.patch(f"/api/v1/admin/rides/{ride.id}", json=body, headers=ADMIN)
    assert response.status_code == 422


async def test_admin_patch_nullable_fields_accepts_null(client, make_ride):
    ride = await make_ride(special_requirements="child seat")
    response = await client.patch(
        f"/api/v1/admin/rides/{ride.id}",
        json={"special_requirements": None, "driver_id": None},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.json()["special_requirements"] is None
    assert response.json()["driver_id"] is None


async def test_profile_patch_null_name_is_422(client, driver):
    response = await client.patch(f"/api/v1/admin/drivers/{driver.id}", json={"name": None}, headers=ADMIN)
    assert response.status_code == 422
    response = await client.patch(f"/api/v1/admin/drivers/{driver.id}", json={"license_number": None}, headers=ADMIN)
    assert response.status_code == 200
