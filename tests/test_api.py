from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import BANK_DETAILS
from core.database import get_db
from core.security import issue_token
from main import app
from models.user import UserRole
from services.auth_service import AuthService


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_headers(session_factory):
    async with session_factory() as session:
        admin = await AuthService(session).register_user("root@platform.org", "root-pass", role=UserRole.ADMIN)
        return {"Authorization": f"Bearer {issue_token(admin.id, admin.email)}"}


async def register(client, email: str) -> dict:
    response = await client.post("/api/v1/auth/register", json={"email": email, "password": "secret-pass"})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def create_charity(client, headers, registration_number="ORG-1") -> dict:
    data = {
        "name": "Helping Hands",
        "description": "Food and shelter",
        "contact_email": "info@helpinghands.org",
        "categories": ["food", "shelter"],
        **BANK_DETAILS,
    }
    if registration_number is not None:
        data["registration_number"] = registration_number
    response = await client.post(
        "/api/v1/charities",
        data=data,
        files={"documents": ("licence.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
class TestAuthApi:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_register_login_and_role(self, client):
        headers = await register(client, "jane@mail.org")

        login = await client.post("/api/v1/auth/login", json={"email": "jane@mail.org", "password": "secret-pass"})
        role = await client.get("/api/v1/auth/check-role", headers=headers)

        assert login.status_code == 200
        assert login.json()["user"]["email"] == "jane@mail.org"
        assert role.json() == {"is_admin": False}

    async def test_bad_credentials_payload(self, client):
        await register(client, "jane@mail.org")

        response = await client.post("/api/v1/auth/login", json={"email": "jane@mail.org", "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid email or password"}

    async def test_duplicate_email(self, client):
        await register(client, "jane@mail.org")

        response = await client.post("/api/v1/auth/register", json={"email": "jane@mail.org", "password": "secret-pass"})

        assert response.status_code == 409
        assert "message" in response.json()

    async def test_validation_error_payload(self, client):
        response = await client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 422
        assert set(response.json()) == {"message"}

    async def test_missing_token(self, client):
        response = await client.get("/api/v1/profile")

        assert response.status_code == 401
        assert "message" in response.json()

    async def test_profile(self, client):
        headers = await register(client, "jane@mail.org")

        updated = await client.put("/api/v1/profile", json={"first_name": "Janet"}, headers=headers)
        profile = await client.get("/api/v1/profile", headers=headers)

        assert updated.status_code == 200
        assert profile.json()["first_name"] == "Janet"
        assert profile.json()["total_donations"] == 0


@pytest.mark.asyncio
class TestDonationFlowApi:
    async def test_charity_to_report(self, client, admin_headers):
        owner = await register(client, "owner@helpinghands.org")
        donor = await register(client, "donor@mail.org")

        charity = await create_charity(client, owner)
        assert charity["verified"] is False
        assert charity["documents"][0]["url"].startswith("/uploads/")

        forbidden = await client.put(f"/api/v1/charities/{charity['id']}/verify", headers=donor)
        assert forbidden.status_code == 403
        assert forbidden.json() == {"message": "Administrator role required"}

        verified = await client.put(f"/api/v1/charities/{charity['id']}/verify", headers=admin_headers)
        assert verified.json()["verified"] is True

        general = await client.post(
            "/api/v1/donations", json={"charity_id": charity["id"], "amount": "500.00"}, headers=donor
        )
        assert general.status_code == 201
        assert general.json()["donation"]["status"] == "COMPLETED"
        assert general.json()["recurring_schedule_error"] is None

        campaign = await client.post(
            "/api/v1/fundraisings",
            json={"charity_id": charity["id"], "title": "Coats", "description": "Winter coats",
                  "target_amount": "1000.00"},
            headers=owner,
        )
        assert campaign.status_code == 201
        campaign_id = campaign.json()["id"]

        too_much = await client.post(
            "/api/v1/donations",
            json={"charity_id": charity["id"], "fundraising_id": campaign_id, "amount": "1000.01"},
            headers=donor,
        )
        assert too_much.status_code == 422
        assert "message" in too_much.json()

        exact = await client.post(
            "/api/v1/donations",
            json={"charity_id": charity["id"], "fundraising_id": campaign_id, "amount": "1000.00"},
            headers=donor,
        )
        assert exact.status_code == 201

        closed = await client.get(f"/api/v1/fundraisings/{campaign_id}")
        assert closed.json()["completed"] is True
        assert closed.json()["active"] is False
        assert Decimal(closed.json()["current_amount"]) == Decimal("1000.00")

        mine = await client.get("/api/v1/donations/user", headers=donor)
        assert len(mine.json()) == 2

        report = await client.post(
            "/api/v1/reports",
            json={"fundraising_id": campaign_id, "title": "Spent", "description": "Coats bought",
                  "spent_amount": "1000.00"},
            headers=owner,
        )
        assert report.status_code == 201, report.text

        detail = await client.get(f"/api/v1/charities/{charity['id']}")
        assert Decimal(detail.json()["total_donations"]) == Decimal("1500.00")
        assert detail.json()["completed_fundraisings_count"] == 1

    async def test_delete_charity_with_active_campaign(self, client, admin_headers):
        owner = await register(client, "owner@helpinghands.org")
        charity = await create_charity(client, owner)
        await client.put(f"/api/v1/charities/{charity['id']}/verify", headers=admin_headers)
        await client.post(
            "/api/v1/fundraisings",
            json={"charity_id": charity["id"], "title": "Coats", "description": "Winter coats",
                  "target_amount": "100.00"},
            headers=owner,
        )

        response = await client.delete(f"/api/v1/charities/{charity['id']}", headers=owner)

        assert response.status_code == 409
        assert "message" in response.json()

    async def test_recurring_schedule_endpoints(self, client, admin_headers):
        owner = await register(client, "owner@helpinghands.org")
        charity = await create_charity(client, owner)
        fund_id = charity["fundraisings"][0]["id"]

        created = await client.post(
            "/api/v1/recurring-payments",
            json={"fundraising_id": fund_id, "amount": "15.00", "payment_day": 31},
            headers=owner,
        )
        listed = await client.get("/api/v1/recurring-payments", headers=owner)
        not_admin = await client.post("/api/v1/recurring-payments/process", headers=owner)
        processed = await client.post("/api/v1/recurring-payments/process", headers=admin_headers)

        assert created.status_code == 201
        assert created.json()["next_payment_date"][8:10] == "31"
        assert len(listed.json()) == 1
        assert not_admin.status_code == 403
        assert processed.json() == {"processed": 0, "skipped": 0, "deactivated": 0}


@pytest.mark.asyncio
class TestCharityApi:
    @pytest.mark.parametrize("registration_number", [None, "", "   "])
    async def test_registration_number_generated_when_blank(self, client, registration_number):
        owner = await register(client, "owner@helpinghands.org")

        charity = await create_charity(client, owner, registration_number=registration_number)

        assert charity["registration_number"].startswith("ORG-")
        assert charity["registration_number"][4:].isdigit()

    async def test_given_registration_number_is_kept(self, client):
        owner = await register(client, "owner@helpinghands.org")

        charity = await create_charity(client, owner, registration_number="ORG-77")

        assert charity["registration_number"] == "ORG-77"
