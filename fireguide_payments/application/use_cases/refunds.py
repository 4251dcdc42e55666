import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from fireguide_payments.application.dtos.results import RefundOutcome
from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.gateway_client import GatewayClient
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.interfaces.refund_repo import RefundRepo
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.constants import SYSTEM_ACTOR, RefundReason
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.refund_request import (
    RefundRequest,
    RefundStatus,
    RequesterType,
)
from fireguide_payments.domain.errors import InvalidStateError, RefundRequestNotFoundError
from fireguide_payments.domain.refund_rules import (
    cascade_refund_to_payout,
    evaluate_refund_policy,
    refund_idempotency_key,
    validate_refund_amount,
)


def refund_outcome(booking: Booking, request: RefundRequest, applied: bool) -> RefundOutcome:
    return RefundOutcome(
        request=request,
        applied=applied,
        payment_status=booking.payment.status.value if booking.payment else "NONE",
        booking_status=booking.status.value,
        payout_status=booking.payout.status.value if booking.payout else None,
    )


class RefundApplier:
    """Applies an approved refund to a booking already held under its lock."""

    def __init__(self, gateway_client: GatewayClient) -> None:
        self._gateway_client = gateway_client
        self._logger = logging.getLogger(__name__)

    async def apply(
        self,
        booking: Booking,
        request: RefundRequest,
        now: datetime,
        actor_id: str,
    ) -> bool:
        """
        Refunds through the gateway, updates the payment and cascades to the payout.

        Returns False when the request was already applied.
        """
        payment = booking.payment
        if payment is None or payment.payment_id != request.payment_id:
            raise InvalidStateError(
                entity="refund_request",
                current_status=request.status.value,
                expected_status=f"pago vigente {request.payment_id}",
                operation="aplicar el reembolso",
            )
        if request.refund_id in payment.applied_refund_ids:
            return False
        if request.status != RefundStatus.APPROVED:
            raise InvalidStateError(
                entity="refund_request",
                current_status=request.status.value,
                expected_status=RefundStatus.APPROVED.value,
                operation="aplicar el reembolso",
            )

        validate_refund_amount(payment, request.amount)
        gateway_refund = await self._gateway_client.refund(
            session_ref=payment.session_ref or payment.payment_id,
            amount=request.amount,
            idempotency_key=refund_idempotency_key(booking.booking_ref, request.refund_id),
        )

        previous_payment = payment.status
        payment.record_refund(request.refund_id, request.amount, now)
        booking.record_change(
            StatusType.PAYMENT,
            previous_payment,
            payment.status,
            actor_id,
            now,
            reason=f"refund {request.refund_id}",
        )

        previous_payout = cascade_refund_to_payout(booking.payout, now)
        if previous_payout is not None and booking.payout is not None:
            booking.record_change(
                StatusType.PAYOUT,
                previous_payout,
                booking.payout.status,
                actor_id,
                now,
                reason=f"refund {request.refund_id}",
            )
            self._logger.warning(
                "Payout adjusted after refund",
                extra={
                    "booking_ref": booking.booking_ref,
                    "payout_id": booking.payout.payout_id,
                    "previous_status": previous_payout.value,
                    "payout_status": booking.payout.status.value,
                },
            )
        elif booking.payout is not None and booking.payout.requires_clawback:
            self._logger.warning(
                "Refund after payout was paid; clawback required",
                extra={"booking_ref": booking.booking_ref, "payout_id": booking.payout.payout_id},
            )

        self._logger.info(
            "Refund applied",
            extra={
                "booking_ref": booking.booking_ref,
                "refund_id": request.refund_id,
                "payment_id": payment.payment_id,
                "amount": str(request.amount),
                "refunded_amount": str(payment.refunded_amount),
                "payment_status": payment.status.value,
                "gateway_refund_ref": gateway_refund.refund_ref,
            },
        )
        return True


class RequestRefundUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        refund_repo: RefundRepo,
        refund_applier: RefundApplier,
        id_generator: IdGenerator,
        clock: Clock,
        booking_locks: BookingLocks,
        auto_approve: bool = True,
    ) -> None:
        self._booking_repo = booking_repo
        self._refund_repo = refund_repo
        self._refund_applier = refund_applier
        self._id_generator = id_generator
        self._clock = clock
        self._booking_locks = booking_locks
        self._auto_approve = auto_approve
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        booking_ref: str,
        amount: Decimal,
        reason: RefundReason,
        requester_id: str,
        requester_type: RequesterType = RequesterType.CUSTOMER,
        custom_reason: str | None = None,
    ) -> RefundOutcome:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            payment = booking.payment
            if payment is None:
                raise InvalidStateError(
                    entity="payment",
                    current_status="NONE",
                    expected_status=["SUCCEEDED", "PARTIALLY_REFUNDED"],
                    operation="solicitar un reembolso",
                )
            validate_refund_amount(payment, amount)

            now = self._clock.now()
            request = RefundRequest(
                refund_id=self._id_generator.new_id("ref"),
                booking_ref=booking_ref,
                payment_id=payment.payment_id,
                amount=amount,
                reason=RefundReason(reason),
                requester_id=requester_id,
                requester_type=RequesterType(requester_type),
                custom_reason=custom_reason,
                created_at=now,
            )

            applied = False
            decision = evaluate_refund_policy(
                request.reason,
                request.requester_type,
                now,
                booking.service_date,
                dispute_open=booking.dispute_open,
            )
            if self._auto_approve and decision.auto_approve:
                request.approve(SYSTEM_ACTOR, now, note=decision.rationale)
                applied = await self._refund_applier.apply(booking, request, now, requester_id)
                booking.reconcile(now, requester_id, reason=f"refund {request.refund_id}")
                booking = await self._booking_repo.save(booking, expected_version)

            await self._refund_repo.save(request)

        self._logger.info(
            "Refund requested",
            extra={
                "booking_ref": booking_ref,
                "refund_id": request.refund_id,
                "amount": str(amount),
                "reason": request.reason.value,
                "auto_approved": applied,
                "policy": decision.rationale,
            },
        )
        return refund_outcome(booking, request, applied)


class ApplyRefundUseCase:
    """Applies a request that was approved earlier; applying twice is a no-op."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        refund_repo: RefundRepo,
        refund_applier: RefundApplier,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._refund_repo = refund_repo
        self._refund_applier = refund_applier
        self._clock = clock
        self._booking_locks = booking_locks

    async def execute(self, refund_id: str, actor_id: str = SYSTEM_ACTOR) -> RefundOutcome:
        request = await self._refund_repo.get(refund_id)
        if request is None:
            raise RefundRequestNotFoundError(refund_id)

        async with self._booking_locks.hold(request.booking_ref):
            booking = await load_booking(self._booking_repo, request.booking_ref)
            expected_version = booking.version
            now = self._clock.now()
            applied = await self._refund_applier.apply(booking, request, now, actor_id)
            if applied:
                booking.reconcile(now, actor_id, reason=f"refund {refund_id}")
                booking = await self._booking_repo.save(booking, expected_version)
        return refund_outcome(booking, request, applied)


class ListRefundsUseCase:
    def __init__(self, refund_repo: RefundRepo) -> None:
        self._refund_repo = refund_repo

    async def execute(
        self, booking_ref: str | None = None, pending_only: bool = False
    ) -> Sequence[RefundRequest]:
        if booking_ref is None:
            return await self._refund_repo.list_pending()
        requests = await self._refund_repo.list_by_booking(booking_ref)
        if pending_only:
            return [r for r in requests if r.status == RefundStatus.PENDING]
        return requests
