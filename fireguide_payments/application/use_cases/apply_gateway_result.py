import logging
from typing import Any

from pydantic import ValidationError

from fireguide_payments.application.dtos.gateway_outcome import GatewayOutcome
from fireguide_payments.application.dtos.results import GatewayResultOutcome
from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.gateway_client import (
    GatewayClient,
    InvalidCallbackError,
)
from fireguide_payments.application.interfaces.idempotency_repo import (
    IdempotencyRecord,
    IdempotencyRepo,
)
from fireguide_payments.application.use_cases.common import hash_request, load_booking
from fireguide_payments.domain.constants import SYSTEM_ACTOR
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.payment import Payment
from fireguide_payments.domain.errors import BookingNotFoundError, IdempotencyConflictError
from fireguide_payments.domain.payment_rules import apply_gateway_result

SCOPE = "GATEWAY_EVENT"


def _payment_for_session(booking: Booking, session_ref: str) -> Payment | None:
    for payment in [booking.payment, *reversed(booking.previous_payments)]:
        if payment is not None and payment.session_ref == session_ref:
            return payment
    return None


class ApplyGatewayResultUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        gateway_client: GatewayClient,
        idempotency_repo: IdempotencyRepo,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._gateway_client = gateway_client
        self._idempotency_repo = idempotency_repo
        self._clock = clock
        self._booking_locks = booking_locks
        self._logger = logging.getLogger(__name__)

    async def execute(self, payload: bytes, signature: str | None) -> GatewayResultOutcome:
        """Parses a gateway callback and applies it to the matching payment."""
        event = await self._gateway_client.parse_outcome_event(payload, signature)
        try:
            outcome = GatewayOutcome.model_validate(event)
        except ValidationError as exc:
            self._logger.warning("Unrecognised gateway callback", extra={"errors": exc.errors()})
            raise InvalidCallbackError(
                f"Malformed gateway callback: {exc.error_count()} error(s)"
            ) from exc
        return await self.apply(outcome)

    async def apply(self, outcome: GatewayOutcome) -> GatewayResultOutcome:
        located = await self._booking_repo.find_by_session_ref(outcome.session_ref)
        if located is None:
            raise BookingNotFoundError(outcome.session_ref)

        req_hash = hash_request(SCOPE, outcome.model_dump(mode="json"))

        async with self._booking_locks.hold(located.booking_ref):
            existing = await self._idempotency_repo.get(scope=SCOPE, idem_key=outcome.event_id)
            if existing:
                if existing.request_hash != req_hash:
                    raise IdempotencyConflictError(idem_key=outcome.event_id, scope=SCOPE)
                self._logger.info(
                    "Duplicate gateway event ignored",
                    extra={"event_id": outcome.event_id, "booking_ref": located.booking_ref},
                )
                return GatewayResultOutcome(**{**existing.response_json, "duplicate": True})

            booking = await load_booking(self._booking_repo, located.booking_ref)
            expected_version = booking.version
            payment = _payment_for_session(booking, outcome.session_ref)
            if payment is None:
                raise BookingNotFoundError(outcome.session_ref)

            now = self._clock.now()
            previous = payment.status
            changed = apply_gateway_result(
                payment,
                outcome.status,
                now,
                reported_amount=outcome.amount,
                gateway_reference=outcome.gateway_reference,
                failure_reason=outcome.failure_reason,
            )
            if changed:
                booking.record_change(
                    StatusType.PAYMENT,
                    previous,
                    payment.status,
                    SYSTEM_ACTOR,
                    now,
                    reason=f"gateway event {outcome.event_id}",
                )
                booking.reconcile(now, SYSTEM_ACTOR, reason=f"payment {payment.status.value}")
                await self._booking_repo.save(booking, expected_version)

            result = GatewayResultOutcome(
                event_id=outcome.event_id,
                booking_ref=booking.booking_ref,
                payment_id=payment.payment_id,
                payment_status=payment.status.value,
                booking_status=booking.status.value,
                changed=changed,
            )
            await self._idempotency_repo.save(
                IdempotencyRecord(
                    scope=SCOPE,
                    idem_key=outcome.event_id,
                    request_hash=req_hash,
                    response_json=_as_json(result),
                    http_status=200,
                    reference_booking_ref=booking.booking_ref,
                )
            )

        self._logger.info(
            "Gateway outcome applied",
            extra={
                "event_id": outcome.event_id,
                "booking_ref": result.booking_ref,
                "payment_id": result.payment_id,
                "previous_status": previous.value,
                "payment_status": result.payment_status,
                "booking_status": result.booking_status,
                "changed": changed,
            },
        )
        return result


def _as_json(result: GatewayResultOutcome) -> dict[str, Any]:
    return {
        "event_id": result.event_id,
        "booking_ref": result.booking_ref,
        "payment_id": result.payment_id,
        "payment_status": result.payment_status,
        "booking_status": result.booking_status,
        "changed": result.changed,
    }
