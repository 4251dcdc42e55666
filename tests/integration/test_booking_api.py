"""
Flujos HTTP de punta a punta sobre la app FastAPI con el bundle in-memory.

Cubre el ciclo completo: cotizar, reservar, cobrar (webhook), entregar,
liquidar, y el mapeo de errores de dominio a códigos HTTP.
"""

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


class TestQuotes:
    def test_quote_returns_price_and_breakdown(self, client: TestClient):
        response = client.post(
            "/api/v1/quotes",
            json={
                "service_type": "FRA",
                "attributes": {"base_price": "250.00", "property_size": "large", "risk_level": "high"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["final_price"] == "600.00"
        assert data["breakdown"]["size_addon"] == "200"

    def test_missing_attribute_is_422(self, client: TestClient):
        response = client.post(
            "/api/v1/quotes",
            json={"service_type": "ALARM", "attributes": {"base_price": "200.00", "is_addressable": True}},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_PRICING_INPUT"
        assert response.json()["error"]["field"] == "is_overdue"

    def test_unknown_service_type_fails_validation(self, client: TestClient):
        response = client.post("/api/v1/quotes", json={"service_type": "BOILER", "attributes": {}})
        assert response.status_code == 422

    def test_oversized_price_is_422(self, client: TestClient):
        response = client.post(
            "/api/v1/quotes",
            json={"service_type": "EXTINGUISHER", "attributes": {"base_price": 1e30}},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_PRICING_INPUT"
        assert response.json()["error"]["field"] == "base_price"

    def test_whole_amounts_are_rendered_with_cents(self, client: TestClient):
        response = client.post(
            "/api/v1/quotes",
            json={"service_type": "EXTINGUISHER", "attributes": {"base_price": 300}},
        )

        assert response.status_code == 200
        assert response.json()["final_price"] == "300.00"


class TestBookingLifecycle:
    def test_full_flow_from_booking_to_paid_payout(self, client: TestClient, api):
        booking_ref = api.create_booking()

        checkout = api.checkout(booking_ref)
        assert checkout["commission_amount"] == "45.00"
        assert checkout["professional_earnings"] == "255.00"
        assert checkout["booking_status"] == "CREATED"

        response = api.webhook(
            {"id": "evt_1", "session_id": checkout["session_ref"], "status": "succeeded", "amount": "300.00"}
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "SUCCEEDED"
        assert response.json()["booking_status"] == "CONFIRMED"

        response = client.post(
            f"/api/v1/bookings/{booking_ref}/deliverables",
            json={"deliverable_type": "EXTINGUISHER_REPORT", "artifact_ref": "s3://reports/1"},
        )
        assert response.status_code == 200
        booking = response.json()
        assert booking["status"] == "COMPLETED"
        assert booking["workflow_stage"] == "Awaiting Payout"
        assert booking["payout"]["status"] == "ELIGIBLE"
        assert booking["payout"]["amount"] == "255.00"

        eligibility = client.get(f"/api/v1/bookings/{booking_ref}/payout/eligibility").json()
        assert eligibility["eligible"] is True
        assert eligibility["amount"] == "255.00"

        response = client.post(f"/api/v1/bookings/{booking_ref}/payout", json={"account_ref": "acct-1"})
        assert response.status_code == 200
        assert response.json()["status"] == "SCHEDULED"

        response = client.post(f"/api/v1/bookings/{booking_ref}/payout/execute", json={})
        assert response.status_code == 200
        assert response.json()["status"] == "PAID"

        booking = client.get(f"/api/v1/bookings/{booking_ref}").json()
        assert booking["status"] == "CLOSED"
        assert [h["new"] for h in booking["status_history"] if h["status_type"] == "booking"] == [
            "CREATED",
            "CONFIRMED",
            "COMPLETED",
            "CLOSED",
        ]

    def test_replayed_webhook_is_acknowledged_once(self, api):
        booking_ref = api.create_booking()
        checkout = api.checkout(booking_ref)
        event = {"id": "evt_9", "session_id": checkout["session_ref"], "status": "succeeded"}

        first = api.webhook(event)
        replay = api.webhook(event)

        assert first.json()["changed"] is True
        assert replay.status_code == 200
        assert replay.json()["duplicate"] is True

    def test_reused_event_id_with_other_payload_is_409(self, api):
        booking_ref = api.create_booking()
        checkout = api.checkout(booking_ref)
        api.webhook({"id": "evt_5", "session_id": checkout["session_ref"], "status": "authorized"})

        response = api.webhook({"id": "evt_5", "session_id": checkout["session_ref"], "status": "succeeded"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IDEMPOTENCY_CONFLICT"

    def test_malformed_webhook_is_400(self, api):
        response = api.webhook({"id": "evt_1", "status": "succeeded"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CALLBACK"

    def test_non_json_webhook_is_400(self, api):
        response = api.webhook({}, body=b"not json")
        assert response.status_code == 400

    def test_amount_mismatch_is_422(self, api):
        booking_ref = api.create_booking()
        checkout = api.checkout(booking_ref)
        response = api.webhook(
            {"id": "evt_2", "session_id": checkout["session_ref"], "status": "succeeded", "amount": "1.00"}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "GATEWAY_AMOUNT_MISMATCH"

    def test_second_checkout_after_payment_is_409(self, client: TestClient, api):
        booking_ref = api.create_booking()
        api.pay(booking_ref)

        response = client.post(f"/api/v1/bookings/{booking_ref}/checkout")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_PAID"

    def test_status_cannot_be_set_by_the_client(self, client: TestClient, api):
        payload = {**api.booking_payload, "status": "CLOSED"}
        response = client.post("/api/v1/bookings", json=payload)
        assert response.status_code == 422

    def test_unknown_booking_is_404(self, client: TestClient):
        response = client.get("/api/v1/bookings/BK-NOPE0001")
        assert response.status_code == 404
        assert response.json()["error"]["booking_ref"] == "BK-NOPE0001"

    def test_incomplete_booking_cannot_be_checked_out(self, client: TestClient):
        response = client.post(
            "/api/v1/bookings",
            json={"service_type": "CONSULTATION", "pricing": {"base_price": "90.00"}},
        )
        booking_ref = response.json()["booking_ref"]

        response = client.post(f"/api/v1/bookings/{booking_ref}/checkout")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "BOOKING_NOT_CONFIRMABLE"

    def test_cancel_unpaid_booking(self, client: TestClient, api):
        booking_ref = api.create_booking()
        response = client.post(
            f"/api/v1/bookings/{booking_ref}/cancel", json={"actor_id": "cust-1", "reason": "changed plans"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["workflow_stage"] == "Cancelled"

    def test_sync_deliverables_from_store(self, client: TestClient, api, api_bundle):
        booking_ref = api.create_booking()
        api.pay(booking_ref)
        api_bundle["deliverable_store"].upload(booking_ref, "EXTINGUISHER_REPORT")

        response = client.post(f"/api/v1/bookings/{booking_ref}/deliverables/sync")

        assert response.status_code == 200
        assert response.json()["deliverables"] == ["EXTINGUISHER_REPORT"]
        assert response.json()["missing_deliverables"] == []


class TestRefundsApi:
    def test_refund_over_balance_is_409(self, client: TestClient, api):
        booking_ref = api.create_booking()
        api.pay(booking_ref)

        response = client.post(
            f"/api/v1/bookings/{booking_ref}/refunds",
            json={
                "amount": "300.01",
                "reason": "PROFESSIONAL_CANCELLED",
                "requester_id": "pro-1",
                "requester_type": "PROFESSIONAL",
            },
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EXCEEDS_REFUNDABLE_BALANCE"

    def test_pending_refund_is_approved_by_admin(self, client: TestClient, api):
        booking_ref = api.create_booking()
        api.pay(booking_ref)

        response = client.post(
            f"/api/v1/bookings/{booking_ref}/refunds",
            json={"amount": "100.00", "reason": "OTHER", "requester_id": "cust-1", "custom_reason": "late"},
        )
        assert response.status_code == 201
        refund = response.json()
        assert refund["applied"] is False
        refund_id = refund["request"]["refund_id"]

        listed = client.get(f"/api/v1/bookings/{booking_ref}/refunds", params={"pending_only": True})
        assert [r["refund_id"] for r in listed.json()] == [refund_id]

        forbidden = client.post(f"/api/v1/admin/refunds/{refund_id}/approve", json={})
        assert forbidden.status_code == 403

        approved = client.post(
            f"/api/v1/admin/refunds/{refund_id}/approve",
            json={"note": "goodwill"},
            headers=api.admin_headers,
        )
        assert approved.status_code == 200
        assert approved.json()["payment_status"] == "PARTIALLY_REFUNDED"

        applied = client.post(f"/api/v1/refunds/{refund_id}/apply", json={})
        assert applied.status_code == 200
        assert applied.json()["applied"] is False

    def test_unknown_refund_is_404(self, client: TestClient):
        response = client.post("/api/v1/refunds/ref_missing/apply", json={})
        assert response.status_code == 404
