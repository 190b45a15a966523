"""
HTTP API integration tests.

Run the FastAPI app in-process through httpx's ASGI transport. The
lifespan does not run there, so the order store is attached to app.state
directly and the routers that open database sessions are pointed at the
in-memory test database. Outbound providers are mocked.
"""

import json
import time
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

import config
from app import app
from models.distributor import CoordinatesDTO
from processing.processing import compute_signature
from repositories.order import InMemoryOrderRepository
from services.geolocation import GeolocationService
from services.notification import NotificationService
from utils.session_validator import sign_session_data

APPLICATION = {
    "full_name": "Sam Carpenter",
    "business_name": "Desert Woodworks",
    "phone_number": "(602) 555-0199",
    "email_address": "sam@desertwoodworks.com",
    "street": "100 W Washington St",
    "city": "Phoenix",
    "state": "AZ",
    "zip_code": "85003",
    "business_type": "retailer",
    "years_in_business": 8,
    "territory": "Maricopa County and northern Arizona",
    "purchase_volume": "1000-5000",
    "sells_similar_products": "no",
    "hear_about_us": "trade-show",
}


@pytest_asyncio.fixture
async def client(session_factory):
    app.state.order_repository = InMemoryOrderRepository()
    with patch("web.distribution_router.get_db_session", session_factory), \
            patch("web.admin_router.get_db_session", session_factory):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


def session_header(user_id="user_1", email="jane@example.com", name="Jane Builder") -> dict:
    fields = {"user_id": user_id, "email": email, "name": name}
    return {"X-Session-Data": sign_session_data(fields, config.AUTH_SESSION_SECRET)}


ADMIN_HEADERS = {"X-Admin-Token": "test_admin_token"}


class TestPublicEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "order_store": "memory"}

    @pytest.mark.asyncio
    async def test_pricing_tiers(self, client):
        body = (await client.get("/pricing/tiers")).json()

        assert [tier["range"] for tier in body["tiers"]] == ["5,000-20,000", "<20,000-160,000", "<160,000-960,000"]
        assert body["increment"] == 5000

    @pytest.mark.asyncio
    async def test_pricing_quote(self, client):
        body = (await client.get("/pricing/quote", params={"quantity": 12300})).json()

        assert body["price_per_unit"] == 0.072
        assert body["suggested_quantity"] == 10000

    @pytest.mark.asyncio
    async def test_query_validation_is_400(self, client):
        response = await client.get("/pricing/quote", params={"quantity": 0})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_guest_validation(self, client):
        cart = [{"id": "force-dowels-10000", "name": "Force Dowels", "quantity": 10000,
                 "tier": "5,000-20,000", "price_per_unit": 0.072}]

        body = (await client.post("/checkout/guest-validation", json={"cart_items": cart})).json()

        assert body["validation"]["is_allowed"] is False
        assert body["validation"]["requires_auth"] is True
        assert body["call_to_action"]["primary"]["href"]


class TestOrders:

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/orders")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    @pytest.mark.asyncio
    async def test_forged_session_rejected(self, client):
        headers = {"X-Session-Data": sign_session_data({"user_id": "user_1"}, "not_the_secret")}

        assert (await client.get("/orders", headers=headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_owner_flow(self, client):
        created = await client.post("/orders", headers=session_header(),
                                    json={"quantity": 5000, "tier": "5,000-20,000", "total_price": 360.0})
        order_id = created.json()["order"]["id"]

        listed = await client.get("/orders", headers=session_header())
        fetched = await client.get(f"/orders/{order_id}", headers=session_header())
        foreign = await client.get(f"/orders/{order_id}", headers=session_header(user_id="user_2"))
        missing = await client.get("/orders/999", headers=session_header())

        assert created.status_code == 200
        assert created.json()["order"]["user_email"] == "jane@example.com"
        assert [order["id"] for order in listed.json()["orders"]] == [order_id]
        assert fetched.json()["order"]["tier"] == "5,000-20,000"
        assert foreign.status_code == 403
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_update_payment_status_needs_target(self, client):
        response = await client.post("/orders/update-payment-status", headers=ADMIN_HEADERS,
                                     json={"payment_status": "paid"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_payment_status_requires_admin_token(self, client):
        created = await client.post("/orders", headers=session_header(),
                                    json={"quantity": 5000, "tier": "5,000-20,000", "total_price": 360.0})
        order_id = created.json()["order"]["id"]
        body = {"order_id": order_id, "payment_status": "paid"}

        anonymous = await client.post("/orders/update-payment-status", json=body)
        customer = await client.post("/orders/update-payment-status", headers=session_header(), json=body)
        wrong_token = await client.post("/orders/update-payment-status",
                                        headers={"X-Admin-Token": "guess"}, json=body)
        order = await client.get(f"/orders/{order_id}", headers=session_header())

        assert anonymous.status_code == 401
        assert customer.status_code == 401
        assert wrong_token.status_code == 403
        assert order.json()["order"]["payment_status"] is None
        assert order.json()["order"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_update_payment_status_with_admin_token(self, client):
        created = await client.post("/orders", headers=session_header(),
                                    json={"quantity": 5000, "tier": "5,000-20,000", "total_price": 360.0})
        order_id = created.json()["order"]["id"]

        with patch.object(NotificationService, "order_confirmation", new_callable=AsyncMock), \
                patch.object(NotificationService, "admin_order_notification", new_callable=AsyncMock):
            response = await client.post("/orders/update-payment-status", headers=ADMIN_HEADERS,
                                         json={"order_id": order_id, "payment_status": "paid"})

        assert response.status_code == 200
        assert response.json()["orders"][0]["status"] == "confirmed"


class TestAdmin:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        assert (await client.post("/admin/reset-orders")).status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_token(self, client):
        response = await client.post("/admin/reset-orders", headers={"X-Admin-Token": "guess"})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_reset_and_cleanup(self, client):
        await client.post("/orders", headers=session_header(),
                          json={"quantity": 5000, "tier": "5,000-20,000", "total_price": 360.0})

        report = await client.get("/admin/cleanup-orders", headers=ADMIN_HEADERS)
        reset = await client.post("/admin/reset-orders", headers=ADMIN_HEADERS)

        assert report.json()["success"] is True
        assert reset.json()["orders_deleted"] == 1


class TestStripeWebhook:

    @pytest.mark.asyncio
    async def test_signed_event_acknowledged(self, client):
        payload = json.dumps({"id": "evt_1", "type": "customer.created", "data": {"object": {"id": "cus_1"}}}).encode()
        timestamp = int(time.time())
        signature = compute_signature(payload, timestamp, config.STRIPE_WEBHOOK_SECRET)

        response = await client.post("/stripe/webhooks", content=payload,
                                     headers={"Stripe-Signature": f"t={timestamp},v1={signature}",
                                              "Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"received": True}

    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, client):
        response = await client.post("/stripe/webhooks", content=b'{"id":"evt_1"}',
                                     headers={"Stripe-Signature": f"t={int(time.time())},v1=deadbeef"})

        assert response.status_code == 403
        assert response.json()["success"] is False


class TestDistribution:

    @pytest.mark.asyncio
    async def test_accept_then_conflict(self, client):
        with patch.object(NotificationService, "distributor_application", new_callable=AsyncMock), \
                patch.object(NotificationService, "application_confirmation", new_callable=AsyncMock), \
                patch.object(NotificationService, "distributor_accepted", new_callable=AsyncMock), \
                patch.object(GeolocationService, "geocode", new_callable=AsyncMock,
                             return_value=CoordinatesDTO(latitude=33.4484, longitude=-112.0740)):
            submitted = await client.post("/distributor-application", json=APPLICATION)
            unique_id = submitted.json()["unique_id"]

            accepted = await client.get(f"/distribution/accept/{unique_id}")
            again = await client.post(f"/distribution/decline/{unique_id}")
            nearby = await client.get("/distributors", params={"lat": 33.45, "lng": -112.07, "radius": 10})

        assert submitted.status_code == 200
        assert accepted.status_code == 200
        assert accepted.json()["request"]["status"] == "accepted"
        assert accepted.json()["request"]["accepted_at"] is not None
        assert again.status_code == 409
        assert again.json()["status"] == "accepted"
        assert again.json()["processed_at"] is not None
        assert [d["business_name"] for d in nearby.json()["distributors"]] == ["Desert Woodworks"]

    @pytest.mark.asyncio
    async def test_malformed_id(self, client):
        response = await client.get("/distribution/accept/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["field"] == "unique_id"

    @pytest.mark.asyncio
    async def test_invalid_application(self, client):
        response = await client.post("/distributor-application", json={**APPLICATION, "email_address": "nope"})

        assert response.status_code == 400
