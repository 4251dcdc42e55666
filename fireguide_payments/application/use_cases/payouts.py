import logging
from datetime import datetime

from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.disbursement_client import (
    DisbursementClient,
    DisbursementStatus,
)
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.constants import SYSTEM_ACTOR
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.payout import Payout, PayoutStatus
from fireguide_payments.domain.errors import InvalidStateError, NotEligibleError
from fireguide_payments.domain.payout_rules import (
    PayoutEligibility,
    check_payout_eligibility,
    payout_ceiling,
    payout_idempotency_key,
)


class PayoutExecutor:
    """Sends a scheduled payout through the disbursement port."""

    def __init__(self, disbursement_client: DisbursementClient) -> None:
        self._disbursement_client = disbursement_client
        self._logger = logging.getLogger(__name__)

    async def run(self, booking: Booking, now: datetime, actor_id: str) -> Payout:
        payout = booking.payout
        if payout is None:
            raise InvalidStateError(
                entity="payout",
                current_status="NONE",
                expected_status=PayoutStatus.SCHEDULED.value,
                operation="ejecutar la liquidación",
            )
        if payout.status == PayoutStatus.PAID:
            return payout

        if payout.status == PayoutStatus.FAILED:
            payout.schedule(now)
            booking.record_change(
                StatusType.PAYOUT, PayoutStatus.FAILED, payout.status, actor_id, now, reason="retry"
            )

        if payout.status != PayoutStatus.SCHEDULED or not payout.account_ref:
            raise InvalidStateError(
                entity="payout",
                current_status=payout.status.value,
                expected_status="SCHEDULED con cuenta destino",
                operation="ejecutar la liquidación",
            )

        ceiling = payout_ceiling(booking.payment) if booking.payment else payout.amount
        if payout.amount > ceiling:
            self._logger.warning(
                "Payout amount capped to ceiling",
                extra={
                    "booking_ref": booking.booking_ref,
                    "payout_id": payout.payout_id,
                    "amount": str(payout.amount),
                    "ceiling": str(ceiling),
                },
            )
            payout.amount = ceiling

        attempt = payout.next_attempt
        result = await self._disbursement_client.payout(
            account_ref=payout.account_ref,
            amount=payout.amount,
            idempotency_key=payout_idempotency_key(booking.booking_ref, payout.payout_id, attempt),
        )

        if result.status == DisbursementStatus.PAID:
            payout.mark_paid(now, result.transfer_ref)
            self._logger.info(
                "Payout paid",
                extra={
                    "booking_ref": booking.booking_ref,
                    "payout_id": payout.payout_id,
                    "amount": str(payout.amount),
                    "transfer_ref": result.transfer_ref,
                    "attempt": attempt,
                },
            )
        else:
            payout.mark_failed(now, result.failure_reason)
            self._logger.warning(
                "Payout failed",
                extra={
                    "booking_ref": booking.booking_ref,
                    "payout_id": payout.payout_id,
                    "failure_reason": result.failure_reason,
                    "attempt": attempt,
                },
            )
        booking.record_change(
            StatusType.PAYOUT,
            PayoutStatus.SCHEDULED,
            payout.status,
            actor_id,
            now,
            reason=f"disbursement attempt {attempt}",
        )
        return payout


class CheckPayoutEligibilityUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(self, booking_ref: str) -> PayoutEligibility:
        booking = await load_booking(self._booking_repo, booking_ref)
        return check_payout_eligibility(booking)


class CreatePayoutUseCase:
    """Schedules the payout of an eligible booking towards the professional's account."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._clock = clock
        self._booking_locks = booking_locks
        self._logger = logging.getLogger(__name__)

    async def execute(
        self, booking_ref: str, account_ref: str, actor_id: str = SYSTEM_ACTOR
    ) -> Payout:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            now = self._clock.now()

            booking.reconcile(now, actor_id)
            eligibility = check_payout_eligibility(booking)
            if not eligibility.is_eligible or booking.payout is None:
                self._logger.info(
                    "Payout not eligible",
                    extra={"booking_ref": booking_ref, "reasons": eligibility.reason_codes()},
                )
                raise NotEligibleError(booking_ref, eligibility.reason_codes())

            payout = booking.payout
            payout.amount = min(payout.amount, eligibility.amount)
            payout.schedule(now, account_ref)
            booking.record_change(
                StatusType.PAYOUT, PayoutStatus.ELIGIBLE, payout.status, actor_id, now
            )
            booking.reconcile(now, actor_id)
            booking = await self._booking_repo.save(booking, expected_version)

        self._logger.info(
            "Payout scheduled",
            extra={
                "booking_ref": booking_ref,
                "payout_id": payout.payout_id,
                "amount": str(payout.amount),
            },
        )
        return booking.payout


class ExecutePayoutUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        payout_executor: PayoutExecutor,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._payout_executor = payout_executor
        self._clock = clock
        self._booking_locks = booking_locks

    async def execute(self, booking_ref: str, actor_id: str = SYSTEM_ACTOR) -> Payout:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            if booking.payout is not None and booking.payout.status == PayoutStatus.PAID:
                return booking.payout

            now = self._clock.now()
            await self._payout_executor.run(booking, now, actor_id)
            booking.reconcile(now, actor_id)
            booking = await self._booking_repo.save(booking, expected_version)
        return booking.payout
