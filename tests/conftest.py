"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Reloj y generador de ids deterministas
- Bundle in-memory con todos los casos de uso cableados
- Un flujo de reserva (crear, cobrar, entregar) para escenarios de punta a punta
- Cliente HTTP de prueba (FastAPI TestClient)
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from fireguide_payments.api.dependencies import (
    _in_memory_bundle,
    build_bundle,
    build_use_cases,
    get_bundle,
)
from fireguide_payments.application.dtos.gateway_outcome import GatewayOutcome
from fireguide_payments.application.interfaces.clock import FakeClock
from fireguide_payments.application.interfaces.id_generator import FakeIdGenerator
from fireguide_payments.config import Settings, get_settings
from fireguide_payments.domain.constants import REQUIRED_DELIVERABLES, ServiceType
from fireguide_payments.domain.value_objects.admin_identity import AdminIdentity
from fireguide_payments.main import app

FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
SERVICE_DATE = FIXED_NOW + timedelta(days=7)

# Precio plano: 300.00 con 15% de comisión -> 45.00 / 255.00
EXTINGUISHER_PRICING = {"base_price": "300.00", "number_of_units": 4}


# ============================================================================
# FIXTURES DE DOMINIO Y CASOS DE USO
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def id_generator() -> FakeIdGenerator:
    return FakeIdGenerator()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, circuit_breaker_enabled=False, gateway_webhook_secret=None)


@pytest.fixture
def bundle(settings, clock, id_generator) -> dict[str, Any]:
    bundle = build_bundle(settings, clock=clock, id_generator=id_generator)
    bundle["use_cases"] = build_use_cases(bundle, settings)
    return bundle


@pytest.fixture
def use_cases(bundle) -> dict[str, Any]:
    return bundle["use_cases"]


@pytest.fixture
def admin() -> AdminIdentity:
    return AdminIdentity.admin("admin-1")


@pytest.fixture
def not_admin() -> AdminIdentity:
    return AdminIdentity(admin_id="support-7", roles=frozenset({"support"}))


class BookingFlow:
    """Atajos para llevar una reserva por el ciclo completo."""

    def __init__(self, use_cases: dict[str, Any]):
        self.use_cases = use_cases
        self._events = 0

    def next_event_id(self) -> str:
        self._events += 1
        return f"evt_{self._events:04d}"

    async def create(
        self,
        service_type: ServiceType = ServiceType.EXTINGUISHER,
        pricing: dict[str, Any] | None = None,
        service_date: datetime | None = SERVICE_DATE,
    ):
        return await self.use_cases["create_booking"].execute(
            service_type=service_type,
            pricing=pricing or EXTINGUISHER_PRICING,
            customer_id="cust-1",
            professional_id="pro-1",
            service_date=service_date,
        )

    async def report(self, session_ref: str, status: str, amount: Decimal | None = None):
        return await self.use_cases["apply_gateway_result"].apply(
            GatewayOutcome(
                event_id=self.next_event_id(),
                session_ref=session_ref,
                status=status,
                amount=amount,
            )
        )

    async def pay(self, booking_ref: str, status: str = "succeeded"):
        checkout = await self.use_cases["start_checkout"].execute(booking_ref)
        await self.report(checkout.session_ref, status, checkout.amount)
        return await self.use_cases["get_booking"].execute(booking_ref)

    async def deliver(self, booking_ref: str):
        booking = await self.use_cases["get_booking"].execute(booking_ref)
        for deliverable_type in REQUIRED_DELIVERABLES[booking.service_type]:
            booking = await self.use_cases["submit_deliverable"].execute(
                booking_ref, deliverable_type, artifact_ref=f"s3://reports/{booking_ref}"
            )
        return booking

    async def paid_booking(self, **kwargs):
        booking = await self.create(**kwargs)
        return await self.pay(booking.booking_ref)

    async def completed_booking(self, **kwargs):
        booking = await self.paid_booking(**kwargs)
        return await self.deliver(booking.booking_ref)


@pytest.fixture
def flow(use_cases) -> BookingFlow:
    return BookingFlow(use_cases)


# ============================================================================
# FIXTURES DE CLIENTE HTTP
# ============================================================================

@pytest.fixture
def api_bundle(bundle) -> dict[str, Any]:
    return bundle


@pytest.fixture
def client(api_bundle) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient con el bundle de prueba (reloj y ids deterministas).
    """
    app.dependency_overrides[get_bundle] = lambda: api_bundle

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_cached_wiring():
    """
    Limpia los singletons cacheados antes y después de cada test.
    Evita que un breaker abierto o una reserva de otro test se filtre.
    """
    get_settings.cache_clear()
    _in_memory_bundle.cache_clear()
    yield
    get_settings.cache_clear()
    _in_memory_bundle.cache_clear()


# ============================================================================
# MARKERS DE PYTEST
# ============================================================================

def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: Flujos HTTP a través de la app FastAPI"
    )
    config.addinivalue_line(
        "markers",
        "circuit_breaker: Tests del circuit breaker de pasarela y dispersión"
    )
