"""Atajos HTTP compartidos por los tests de integración."""

import json

import pytest
from fastapi.testclient import TestClient

BOOKING_PAYLOAD = {
    "service_type": "EXTINGUISHER",
    "pricing": {"base_price": "300.00", "number_of_units": 4},
    "customer_id": "cust-1",
    "professional_id": "pro-1",
    "service_date": "2026-03-09T09:00:00+00:00",
}

ADMIN_HEADERS = {"X-Admin-Id": "admin-1", "X-Admin-Roles": "admin"}


class ApiFlow:
    """Lleva una reserva por el ciclo completo a través de la API."""

    booking_payload = BOOKING_PAYLOAD
    admin_headers = ADMIN_HEADERS

    def __init__(self, client: TestClient):
        self.client = client

    def create_booking(self) -> str:
        response = self.client.post("/api/v1/bookings", json=BOOKING_PAYLOAD)
        assert response.status_code == 201, response.text
        return response.json()["booking_ref"]

    def checkout(self, booking_ref: str) -> dict:
        response = self.client.post(f"/api/v1/bookings/{booking_ref}/checkout")
        assert response.status_code == 200, response.text
        return response.json()

    def webhook(self, event: dict, headers: dict | None = None, body: bytes | None = None):
        return self.client.post(
            "/api/v1/webhooks/gateway",
            content=body if body is not None else json.dumps(event).encode(),
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    def pay(self, booking_ref: str, event_id: str = "evt_1") -> dict:
        checkout = self.checkout(booking_ref)
        response = self.webhook(
            {
                "id": event_id,
                "session_id": checkout["session_ref"],
                "status": "succeeded",
                "amount": checkout["amount"],
            }
        )
        assert response.status_code == 200, response.text
        return response.json()

    def completed_booking(self) -> str:
        booking_ref = self.create_booking()
        self.pay(booking_ref)
        response = self.client.post(
            f"/api/v1/bookings/{booking_ref}/deliverables",
            json={"deliverable_type": "EXTINGUISHER_REPORT"},
        )
        assert response.json()["status"] == "COMPLETED"
        return booking_ref


@pytest.fixture
def api(client) -> ApiFlow:
    return ApiFlow(client)
