"""
Circuit Breaker configuration for external money-movement calls.

Guards the payment gateway and the disbursement rail so an outage fails
fast instead of piling up blocked bookings.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately with CircuitBreakerError
- HALF_OPEN: Testing if service recovered, one trial request allowed

Configuration (see Settings):
- fail_max: Number of consecutive failures before opening circuit
- reset_timeout: Seconds to wait before attempting recovery (HALF_OPEN)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any, TypeVar

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

from fireguide_payments.application.interfaces.disbursement_client import (
    DisbursementClient,
    DisbursementResult,
)
from fireguide_payments.application.interfaces.gateway_client import (
    CheckoutSession,
    GatewayClient,
    GatewayRefund,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_circuit_state_change(breaker_name: str, old_state: str | None, new_state: str) -> None:
    """Log circuit breaker state changes; an opened circuit is logged as an error."""
    log = logger.error if new_state == "open" else logger.warning
    log(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


class StateChangeListener(CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        log_circuit_state_change(self.name, getattr(old_state, "name", None), new_state.name)


def create_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> CircuitBreaker:
    breaker = CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=f"{name}_circuit_breaker",
    )
    breaker.add_listener(StateChangeListener(name))
    return breaker


async def call_with_breaker(breaker: CircuitBreaker, operation: Callable[[], Awaitable[T]]) -> T:
    """
    Runs an async operation through a synchronous pybreaker breaker.

    The breaker call happens in a worker thread that waits on the coroutine
    scheduled back on the running loop, so failures are recorded against the
    real exception and an open circuit rejects the call before it starts.
    """
    loop = asyncio.get_running_loop()

    def _blocking_call() -> T:
        return asyncio.run_coroutine_threadsafe(operation(), loop).result()

    return await asyncio.to_thread(breaker.call, _blocking_call)


class GuardedGatewayClient(GatewayClient):
    def __init__(self, inner: GatewayClient, breaker: CircuitBreaker) -> None:
        self._inner = inner
        self._breaker = breaker

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def create_checkout_session(
        self,
        amount: Decimal,
        booking_ref: str,
        idempotency_key: str,
    ) -> CheckoutSession:
        return await call_with_breaker(
            self._breaker,
            lambda: self._inner.create_checkout_session(
                amount=amount, booking_ref=booking_ref, idempotency_key=idempotency_key
            ),
        )

    async def parse_outcome_event(
        self,
        payload: bytes,
        signature: str | None,
    ) -> dict[str, Any]:
        # Local verification only; never counts against the breaker.
        return await self._inner.parse_outcome_event(payload, signature)

    async def refund(
        self,
        session_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> GatewayRefund:
        return await call_with_breaker(
            self._breaker,
            lambda: self._inner.refund(
                session_ref=session_ref, amount=amount, idempotency_key=idempotency_key
            ),
        )


class GuardedDisbursementClient(DisbursementClient):
    def __init__(self, inner: DisbursementClient, breaker: CircuitBreaker) -> None:
        self._inner = inner
        self._breaker = breaker

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def payout(
        self,
        account_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> DisbursementResult:
        return await call_with_breaker(
            self._breaker,
            lambda: self._inner.payout(
                account_ref=account_ref, amount=amount, idempotency_key=idempotency_key
            ),
        )


__all__ = [
    "CircuitBreakerError",
    "GuardedDisbursementClient",
    "GuardedGatewayClient",
    "call_with_breaker",
    "create_breaker",
]
