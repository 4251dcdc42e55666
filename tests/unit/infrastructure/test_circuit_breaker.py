import unittest
from decimal import Decimal
from unittest.mock import AsyncMock

from pybreaker import CircuitBreakerError

from fireguide_payments.application.interfaces.gateway_client import GatewayClient, GatewayError
from fireguide_payments.infrastructure.circuit_breaker import (
    GuardedDisbursementClient,
    GuardedGatewayClient,
    create_breaker,
)
from fireguide_payments.infrastructure.in_memory import StubDisbursementClient, StubGatewayClient


class TestGuardedGatewayClient(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.stub = StubGatewayClient()
        self.breaker = create_breaker("gateway_test", fail_max=2, reset_timeout=60)
        self.client = GuardedGatewayClient(self.stub, self.breaker)

    async def test_success_passes_through(self):
        session = await self.client.create_checkout_session(
            amount=Decimal("300.00"), booking_ref="BK-1", idempotency_key="BK-1:checkout:1"
        )

        self.assertTrue(session.session_ref.startswith("cs_"))
        self.assertEqual(self.breaker.current_state, "closed")
        self.assertEqual(self.stub.calls, [("create_checkout_session", "BK-1:checkout:1")])

    async def test_opens_after_consecutive_failures(self):
        self.stub.fail_next = 2

        with self.assertRaises(GatewayError):
            await self.client.refund(session_ref="cs_1", amount=Decimal("10.00"), idempotency_key="k1")
        # El fallo que alcanza fail_max abre el circuito
        with self.assertRaises((GatewayError, CircuitBreakerError)):
            await self.client.refund(session_ref="cs_1", amount=Decimal("10.00"), idempotency_key="k2")

        self.assertEqual(self.breaker.current_state, "open")

        # Con el circuito abierto la pasarela ya no se invoca
        with self.assertRaises(CircuitBreakerError):
            await self.client.refund(session_ref="cs_1", amount=Decimal("10.00"), idempotency_key="k3")
        self.assertEqual(len(self.stub.calls), 2)

    async def test_success_resets_failure_count(self):
        self.stub.fail_next = 1
        with self.assertRaises(GatewayError):
            await self.client.refund(session_ref="cs_1", amount=Decimal("5.00"), idempotency_key="k1")

        await self.client.refund(session_ref="cs_1", amount=Decimal("5.00"), idempotency_key="k2")

        self.assertEqual(self.breaker.fail_counter, 0)
        self.assertEqual(self.breaker.current_state, "closed")

    async def test_parsing_callbacks_is_not_guarded(self):
        inner = AsyncMock(spec=GatewayClient)
        inner.parse_outcome_event.return_value = {"event_id": "evt_1"}
        client = GuardedGatewayClient(inner, self.breaker)
        self.breaker.open()

        event = await client.parse_outcome_event(b"{}", None)

        self.assertEqual(event, {"event_id": "evt_1"})
        inner.parse_outcome_event.assert_awaited_once_with(b"{}", None)


class TestGuardedDisbursementClient(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.stub = StubDisbursementClient()
        self.breaker = create_breaker("disbursement_test", fail_max=1, reset_timeout=60)
        self.client = GuardedDisbursementClient(self.stub, self.breaker)

    async def test_rejected_transfer_does_not_trip_breaker(self):
        self.stub.fail_accounts.add("acct-bad")

        result = await self.client.payout(
            account_ref="acct-bad", amount=Decimal("255.00"), idempotency_key="k1"
        )

        self.assertEqual(result.status.value, "FAILED")
        self.assertEqual(self.breaker.current_state, "closed")

    async def test_outage_opens_breaker(self):
        self.stub.fail_next = 1
        with self.assertRaises((GatewayError, CircuitBreakerError)):
            await self.client.payout(account_ref="acct-1", amount=Decimal("1.00"), idempotency_key="k1")

        with self.assertRaises(CircuitBreakerError):
            await self.client.payout(account_ref="acct-1", amount=Decimal("1.00"), idempotency_key="k2")
        self.assertEqual(self.stub.transfers, [])
