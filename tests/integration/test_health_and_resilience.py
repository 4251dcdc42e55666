"""
Health checks, firma de webhooks y circuit breaker vistos desde la API.

Este módulo usa settings propios: breakers activos y secreto de webhook.
"""

import json

import pytest
from fastapi.testclient import TestClient

from fireguide_payments.config import Settings
from fireguide_payments.infrastructure.in_memory.gateway_client import sign_payload

pytestmark = [pytest.mark.integration, pytest.mark.circuit_breaker]

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        circuit_breaker_enabled=True,
        gateway_breaker_fail_max=2,
        gateway_webhook_secret=WEBHOOK_SECRET,
    )


class TestHealthChecks:
    def test_basic_health_endpoint(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "fireguide-payments"}

    def test_liveness_probe(self, client: TestClient):
        assert client.get("/health/live").status_code == 200

    def test_ready_reports_breaker_states(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {
            "gateway_client": "closed",
            "disbursement_client": "closed",
        }

    def test_not_ready_while_circuit_is_open(self, client: TestClient, api_bundle):
        api_bundle["gateway_client"].breaker.open()

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["checks"]["gateway_client"] == "open"


class TestWebhookSignature:
    def test_signed_callback_is_applied(self, api):
        booking_ref = api.create_booking()
        checkout = api.checkout(booking_ref)
        body = json.dumps(
            {"id": "evt_1", "session_id": checkout["session_ref"], "status": "succeeded"}
        ).encode()

        response = api.webhook(
            {}, body=body, headers={"X-Gateway-Signature": sign_payload(body, WEBHOOK_SECRET)}
        )

        assert response.status_code == 200
        assert response.json()["booking_status"] == "CONFIRMED"

    @pytest.mark.parametrize("signature", [None, "deadbeef"])
    def test_unsigned_or_forged_callback_is_rejected(self, api, signature):
        booking_ref = api.create_booking()
        checkout = api.checkout(booking_ref)
        headers = {"X-Gateway-Signature": signature} if signature else {}

        response = api.webhook(
            {"id": "evt_1", "session_id": checkout["session_ref"], "status": "succeeded"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CALLBACK"
        booking = api.client.get(f"/api/v1/bookings/{booking_ref}").json()
        assert booking["payment"]["status"] == "PENDING"


class TestGatewayOutage:
    def test_gateway_failure_is_502_then_circuit_opens(self, client: TestClient, api, api_bundle):
        booking_ref = api.create_booking()
        stub = api_bundle["gateway_stub"]
        stub.fail_next = 2

        first = client.post(f"/api/v1/bookings/{booking_ref}/checkout")
        assert first.status_code == 502
        assert first.json()["error"]["code"] == "GATEWAY_ERROR"

        second = client.post(f"/api/v1/bookings/{booking_ref}/checkout")
        assert second.status_code == 502

        third = client.post(f"/api/v1/bookings/{booking_ref}/checkout")
        assert third.status_code == 502
        assert third.json()["error"]["code"] == "CIRCUIT_OPEN"
        assert len(stub.calls) == 2

        booking = client.get(f"/api/v1/bookings/{booking_ref}").json()
        assert booking["payment"] is None
        assert booking["status"] == "CREATED"
