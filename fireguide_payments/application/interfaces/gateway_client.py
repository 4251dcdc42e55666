from dataclasses import dataclass
from decimal import Decimal
from typing import Any


class GatewayError(Exception):
    """Falla de transporte o rechazo de la pasarela; es la única clase reintentable."""

    def __init__(self, message: str, operation: str | None = None, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.retryable = retryable


@dataclass
class CheckoutSession:
    session_ref: str
    amount: Decimal
    checkout_url: str | None = None


@dataclass
class GatewayRefund:
    refund_ref: str
    amount: Decimal
    status: str = "succeeded"


class GatewayClient:
    async def create_checkout_session(
        self,
        amount: Decimal,
        booking_ref: str,
        idempotency_key: str,
    ) -> CheckoutSession:
        raise NotImplementedError

    async def parse_outcome_event(
        self,
        payload: bytes,
        signature: str | None,
    ) -> dict[str, Any]:
        """Verifica y decodifica un callback; retorna session ref, status, amount y event id."""
        raise NotImplementedError

    async def refund(
        self,
        session_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> GatewayRefund:
        raise NotImplementedError


class InvalidCallbackError(GatewayError):
    """Callback con firma inválida o forma irreconocible; reintentar no sirve."""

    def __init__(self, message: str):
        super().__init__(message, operation="parse_outcome_event", retryable=False)
