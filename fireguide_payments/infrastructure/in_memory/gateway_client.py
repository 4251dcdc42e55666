import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any
from uuid import uuid4

from fireguide_payments.application.interfaces.gateway_client import (
    CheckoutSession,
    GatewayClient,
    GatewayError,
    GatewayRefund,
    InvalidCallbackError,
)


def sign_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


class StubGatewayClient(GatewayClient):
    """
    In-memory gateway.

    Honours idempotency keys: the same key always returns the same session
    or refund. `fail_next` makes the next N calls raise GatewayError.
    """

    def __init__(self, webhook_secret: str | None = None) -> None:
        self._webhook_secret = webhook_secret
        self.sessions: dict[str, CheckoutSession] = {}
        self.refunds: dict[str, GatewayRefund] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_next = 0

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise GatewayError(f"Simulated gateway failure during {operation}", operation=operation)

    async def create_checkout_session(
        self,
        amount: Decimal,
        booking_ref: str,
        idempotency_key: str,
    ) -> CheckoutSession:
        self.calls.append(("create_checkout_session", idempotency_key))
        self._maybe_fail("create_checkout_session")
        if idempotency_key not in self.sessions:
            session_ref = f"cs_{uuid4().hex[:14]}"
            self.sessions[idempotency_key] = CheckoutSession(
                session_ref=session_ref,
                amount=amount,
                checkout_url=f"https://checkout.invalid/{session_ref}",
            )
        return self.sessions[idempotency_key]

    async def parse_outcome_event(
        self,
        payload: bytes,
        signature: str | None,
    ) -> dict[str, Any]:
        if not payload:
            raise InvalidCallbackError("Empty webhook payload")
        if self._webhook_secret is not None:
            expected = sign_payload(payload, self._webhook_secret)
            if signature is None or not hmac.compare_digest(expected, signature):
                raise InvalidCallbackError("Invalid webhook signature")
        try:
            event = json.loads(payload.decode() or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvalidCallbackError("Invalid webhook payload") from exc
        if not isinstance(event, dict):
            raise InvalidCallbackError("Webhook payload must be a JSON object")
        return event

    async def refund(
        self,
        session_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> GatewayRefund:
        self.calls.append(("refund", idempotency_key))
        self._maybe_fail("refund")
        if idempotency_key not in self.refunds:
            self.refunds[idempotency_key] = GatewayRefund(
                refund_ref=f"re_{uuid4().hex[:14]}", amount=amount
            )
        return self.refunds[idempotency_key]
