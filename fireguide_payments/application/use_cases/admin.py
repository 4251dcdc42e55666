"""Admin override paths. Every operation requires an explicit admin identity and is audited."""

import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from fireguide_payments.application.commission_engine import CommissionEngine
from fireguide_payments.application.dtos.results import (
    PaymentListItem,
    PayoutListItem,
    RefundOutcome,
)
from fireguide_payments.application.interfaces.audit_log import AuditLog
from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.interfaces.refund_repo import RefundRepo
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.application.use_cases.payouts import PayoutExecutor
from fireguide_payments.application.use_cases.refunds import RefundApplier, refund_outcome
from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.entities.audit_record import AuditAction, AuditRecord
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.commission_config import CommissionConfig
from fireguide_payments.domain.entities.payment import SETTLED_PAYMENT_STATUSES, PaymentStatus
from fireguide_payments.domain.entities.payout import Payout, PayoutStatus
from fireguide_payments.domain.entities.refund_request import RefundRequest
from fireguide_payments.domain.errors import (
    InvalidStateError,
    NotEligibleError,
    RefundRequestNotFoundError,
)
from fireguide_payments.domain.payout_rules import IneligibilityReason, payout_ceiling
from fireguide_payments.domain.status_machine import BookingStatus
from fireguide_payments.domain.value_objects.admin_identity import AdminIdentity, require_admin


class PayoutResolution(str, Enum):
    RELEASE = "RELEASE"
    CLAWBACK = "CLAWBACK"


class _AdminUseCase:
    def __init__(self, audit_log: AuditLog, id_generator: IdGenerator, clock: Clock) -> None:
        self._audit_log = audit_log
        self._id_generator = id_generator
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def _audit(
        self,
        action: AuditAction,
        admin: AdminIdentity,
        now: datetime,
        booking_ref: str | None = None,
        reason: str | None = None,
        **details: Any,
    ) -> AuditRecord:
        record = AuditRecord(
            audit_id=self._id_generator.new_id("aud"),
            action=action,
            actor_id=admin.admin_id,
            recorded_at=now,
            booking_ref=booking_ref,
            reason=reason,
            details=details,
        )
        await self._audit_log.append(record)
        self._logger.info(
            "Admin action recorded",
            extra={
                "audit_id": record.audit_id,
                "action": action.value,
                "admin_id": admin.admin_id,
                "booking_ref": booking_ref,
            },
        )
        return record


class AdminApproveRefundUseCase(_AdminUseCase):
    """Approves a pending request regardless of the refund policy, then applies it."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        refund_repo: RefundRepo,
        refund_applier: RefundApplier,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._refund_repo = refund_repo
        self._refund_applier = refund_applier
        self._booking_locks = booking_locks

    async def execute(
        self, admin: AdminIdentity, refund_id: str, note: str | None = None
    ) -> RefundOutcome:
        require_admin(admin, "aprobar reembolsos")
        request = await self._refund_repo.get(refund_id)
        if request is None:
            raise RefundRequestNotFoundError(refund_id)

        async with self._booking_locks.hold(request.booking_ref):
            request = await self._refund_repo.get(refund_id) or request
            booking = await load_booking(self._booking_repo, request.booking_ref)
            expected_version = booking.version
            now = self._clock.now()

            request.approve(admin.admin_id, now, note)
            applied = await self._refund_applier.apply(booking, request, now, admin.admin_id)
            booking.reconcile(now, admin.admin_id, reason=f"refund {refund_id} approved")
            booking = await self._booking_repo.save(booking, expected_version)
            await self._refund_repo.save(request)

            await self._audit(
                AuditAction.APPROVE_REFUND,
                admin,
                now,
                booking_ref=booking.booking_ref,
                reason=note,
                refund_id=refund_id,
                amount=str(request.amount),
            )
        return refund_outcome(booking, request, applied)


class AdminDenyRefundUseCase(_AdminUseCase):
    def __init__(
        self,
        refund_repo: RefundRepo,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._refund_repo = refund_repo
        self._booking_locks = booking_locks

    async def execute(
        self, admin: AdminIdentity, refund_id: str, note: str | None = None
    ) -> RefundRequest:
        require_admin(admin, "rechazar reembolsos")
        request = await self._refund_repo.get(refund_id)
        if request is None:
            raise RefundRequestNotFoundError(refund_id)

        async with self._booking_locks.hold(request.booking_ref):
            request = await self._refund_repo.get(refund_id) or request
            now = self._clock.now()
            request.deny(admin.admin_id, now, note)
            await self._refund_repo.save(request)
            await self._audit(
                AuditAction.DENY_REFUND,
                admin,
                now,
                booking_ref=request.booking_ref,
                reason=note,
                refund_id=refund_id,
            )
        return request


class AdminForcePayoutUseCase(_AdminUseCase):
    """
    Pays the professional immediately, bypassing deliverable, dispute and hold gates.

    The customer must have paid, and the amount never exceeds the payout ceiling.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        payout_executor: PayoutExecutor,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._payout_executor = payout_executor
        self._booking_locks = booking_locks

    async def execute(
        self, admin: AdminIdentity, booking_ref: str, account_ref: str, reason: str
    ) -> Payout:
        require_admin(admin, "forzar liquidaciones")
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            now = self._clock.now()

            payment = booking.payment
            if payment is None or payment.status not in SETTLED_PAYMENT_STATUSES:
                raise InvalidStateError(
                    entity="payment",
                    current_status=payment.status.value if payment else "NONE",
                    expected_status=sorted(s.value for s in SETTLED_PAYMENT_STATUSES),
                    operation="forzar la liquidación",
                )

            ceiling = payout_ceiling(payment)
            payout = booking.payout
            if payout is None:
                payout = Payout.create_eligible(
                    booking_ref, min(payment.professional_earnings, ceiling), now
                )
                booking.payout = payout
                booking.record_change(
                    StatusType.PAYOUT, None, payout.status, admin.admin_id, now, reason="forced"
                )
            elif payout.status in (PayoutStatus.PAID, PayoutStatus.CANCELLED):
                raise InvalidStateError(
                    entity="payout",
                    current_status=payout.status.value,
                    expected_status=[
                        PayoutStatus.ELIGIBLE.value,
                        PayoutStatus.SCHEDULED.value,
                        PayoutStatus.FAILED.value,
                        PayoutStatus.HELD.value,
                    ],
                    operation="forzar la liquidación",
                )

            payout.amount = min(payout.amount, ceiling)
            payout.forced_by = admin.admin_id
            payout.force_reason = reason
            if payout.status in (PayoutStatus.ELIGIBLE, PayoutStatus.HELD):
                previous = payout.status
                payout.schedule(now, account_ref)
                payout.hold_reason = None
                booking.record_change(
                    StatusType.PAYOUT, previous, payout.status, admin.admin_id, now, reason="forced"
                )
            else:
                payout.account_ref = account_ref

            await self._payout_executor.run(booking, now, admin.admin_id)
            booking.payout_hold_reason = None
            booking.reconcile(now, admin.admin_id, reason="forced payout")
            booking = await self._booking_repo.save(booking, expected_version)

            await self._audit(
                AuditAction.FORCE_PAYOUT,
                admin,
                now,
                booking_ref=booking_ref,
                reason=reason,
                payout_id=payout.payout_id,
                amount=str(payout.amount),
                payout_status=booking.payout.status.value,
            )
        return booking.payout


class AdminHoldPayoutUseCase(_AdminUseCase):
    def __init__(
        self,
        booking_repo: BookingRepo,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._booking_locks = booking_locks

    async def execute(self, admin: AdminIdentity, booking_ref: str, reason: str) -> Booking:
        require_admin(admin, "retener liquidaciones")
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            now = self._clock.now()

            payout = booking.payout
            if payout is None:
                if booking.is_terminal:
                    raise InvalidStateError(
                        entity="booking",
                        current_status=booking.status.value,
                        expected_status="reserva no terminal",
                        operation="retener la liquidación",
                    )
                booking.payout_hold_reason = reason
            else:
                if payout.is_final:
                    raise InvalidStateError(
                        entity="payout",
                        current_status=payout.status.value,
                        expected_status=sorted(
                            s.value for s in PayoutStatus if s not in (PayoutStatus.PAID, PayoutStatus.CANCELLED)
                        ),
                        operation="retener la liquidación",
                    )
                previous = payout.status
                payout.hold(now, reason)
                booking.payout_hold_reason = reason
                booking.record_change(
                    StatusType.PAYOUT, previous, payout.status, admin.admin_id, now, reason=reason
                )

            booking.reconcile(now, admin.admin_id, reason=reason)
            booking = await self._booking_repo.save(booking, expected_version)
            await self._audit(AuditAction.HOLD_PAYOUT, admin, now, booking_ref=booking_ref, reason=reason)

        self._logger.warning(
            "Payout held",
            extra={"booking_ref": booking_ref, "admin_id": admin.admin_id, "reason": reason},
        )
        return booking


class AdminResolveHeldPayoutUseCase(_AdminUseCase):
    """
    Resolves a hold.

    RELEASE resumes the payout with its amount re-capped to the current ceiling.
    CLAWBACK cancels it.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._booking_locks = booking_locks

    async def execute(
        self,
        admin: AdminIdentity,
        booking_ref: str,
        resolution: PayoutResolution,
        reason: str | None = None,
    ) -> Booking:
        require_admin(admin, "resolver liquidaciones retenidas")
        resolution = PayoutResolution(resolution)
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            now = self._clock.now()
            payout = booking.payout

            if payout is None or payout.status != PayoutStatus.HELD:
                if payout is None and booking.payout_hold_reason and resolution == PayoutResolution.RELEASE:
                    booking.payout_hold_reason = None
                else:
                    raise InvalidStateError(
                        entity="payout",
                        current_status=payout.status.value if payout else "NONE",
                        expected_status=PayoutStatus.HELD.value,
                        operation=f"resolver la retención ({resolution.value})",
                    )
            elif resolution == PayoutResolution.RELEASE:
                if booking.dispute_open:
                    raise NotEligibleError(booking_ref, [IneligibilityReason.DISPUTE_OPEN.value])
                ceiling = payout_ceiling(booking.payment) if booking.payment else Decimal("0")
                if booking.payment is None or booking.payment.status not in SETTLED_PAYMENT_STATUSES or ceiling <= 0:
                    raise NotEligibleError(
                        booking_ref,
                        [
                            IneligibilityReason.PAYMENT_REFUNDED.value
                            if booking.payment and booking.payment.status == PaymentStatus.REFUNDED
                            else IneligibilityReason.PAYMENT_NOT_SETTLED.value
                        ],
                    )
                payout.release(now, ceiling)
                booking.payout_hold_reason = None
                booking.record_change(
                    StatusType.PAYOUT, PayoutStatus.HELD, payout.status, admin.admin_id, now, reason=reason
                )
            else:
                payout.cancel(now, reason=reason or "clawback")
                booking.payout_hold_reason = None
                booking.record_change(
                    StatusType.PAYOUT, PayoutStatus.HELD, payout.status, admin.admin_id, now, reason=reason
                )

            booking.reconcile(now, admin.admin_id, reason=reason)
            booking = await self._booking_repo.save(booking, expected_version)
            action = (
                AuditAction.RELEASE_PAYOUT
                if resolution == PayoutResolution.RELEASE
                else AuditAction.CLAWBACK_PAYOUT
            )
            await self._audit(
                action,
                admin,
                now,
                booking_ref=booking_ref,
                reason=reason,
                payout_status=booking.payout.status.value if booking.payout else None,
                amount=str(booking.payout.amount) if booking.payout else None,
            )
        return booking


class AdminUpdateCommissionRateUseCase(_AdminUseCase):
    def __init__(
        self,
        commission_engine: CommissionEngine,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._commission_engine = commission_engine

    async def execute(
        self,
        admin: AdminIdentity,
        service_type: ServiceType,
        rate: Decimal,
        reason: str | None = None,
    ) -> CommissionConfig:
        require_admin(admin, "modificar comisiones")
        config = await self._commission_engine.update_commission_rate(
            ServiceType(service_type), rate, admin.admin_id
        )
        await self._audit(
            AuditAction.UPDATE_COMMISSION_RATE,
            admin,
            self._clock.now(),
            reason=reason,
            service_type=config.service_type.value,
            rate=str(config.rate),
            version=config.version,
        )
        return config


class AdminOpenDisputeUseCase(_AdminUseCase):
    """Opening a dispute blocks eligibility and holds any open payout."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._booking_locks = booking_locks

    async def execute(self, admin: AdminIdentity, booking_ref: str, reason: str) -> Booking:
        require_admin(admin, "abrir disputas")
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            if booking.status == BookingStatus.CANCELLED:
                raise InvalidStateError(
                    entity="booking",
                    current_status=booking.status.value,
                    expected_status="reserva no cancelada",
                    operation="abrir una disputa",
                )
            if booking.dispute_open:
                return booking

            now = self._clock.now()
            booking.dispute_open = True
            booking.dispute_reason = reason
            payout = booking.payout
            if payout is not None and payout.is_open and payout.status != PayoutStatus.HELD:
                previous = payout.status
                payout.hold(now, f"dispute: {reason}")
                booking.record_change(
                    StatusType.PAYOUT, previous, payout.status, admin.admin_id, now, reason="dispute opened"
                )

            booking.reconcile(now, admin.admin_id, reason="dispute opened")
            booking = await self._booking_repo.save(booking, expected_version)
            await self._audit(AuditAction.OPEN_DISPUTE, admin, now, booking_ref=booking_ref, reason=reason)
        return booking


class AdminResolveDisputeUseCase(_AdminUseCase):
    """Closes the dispute; a held payout stays held until resolved explicitly."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        booking_locks: BookingLocks,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        super().__init__(audit_log, id_generator, clock)
        self._booking_repo = booking_repo
        self._booking_locks = booking_locks

    async def execute(self, admin: AdminIdentity, booking_ref: str, resolution: str) -> Booking:
        require_admin(admin, "resolver disputas")
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            if not booking.dispute_open:
                raise InvalidStateError(
                    entity="booking",
                    current_status="sin disputa",
                    expected_status="disputa abierta",
                    operation="resolver la disputa",
                )

            now = self._clock.now()
            booking.dispute_open = False
            booking.dispute_reason = None
            booking.reconcile(now, admin.admin_id, reason="dispute resolved")
            booking = await self._booking_repo.save(booking, expected_version)
            await self._audit(
                AuditAction.RESOLVE_DISPUTE, admin, now, booking_ref=booking_ref, reason=resolution
            )
        return booking


def _in_range(value: datetime | None, date_from: datetime | None, date_to: datetime | None) -> bool:
    if value is None:
        return date_from is None and date_to is None
    if date_from is not None and value < date_from:
        return False
    if date_to is not None and value > date_to:
        return False
    return True


class ListPaymentsUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(
        self,
        admin: AdminIdentity,
        status: PaymentStatus | None = None,
        customer_id: str | None = None,
        professional_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[PaymentListItem]:
        require_admin(admin, "listar pagos")
        items: list[PaymentListItem] = []
        for booking in await self._booking_repo.list_all():
            payment = booking.payment
            if payment is None:
                continue
            if status is not None and payment.status != status:
                continue
            if customer_id is not None and booking.customer_id != customer_id:
                continue
            if professional_id is not None and booking.professional_id != professional_id:
                continue
            if not _in_range(payment.created_at, date_from, date_to):
                continue
            items.append(
                PaymentListItem(
                    booking_ref=booking.booking_ref,
                    customer_id=booking.customer_id,
                    professional_id=booking.professional_id,
                    booking_status=booking.status.value,
                    payment=payment,
                    created_at=payment.created_at,
                )
            )
        return items


class ListPayoutsUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(
        self,
        admin: AdminIdentity,
        status: PayoutStatus | None = None,
        professional_id: str | None = None,
        requires_clawback: bool | None = None,
    ) -> list[PayoutListItem]:
        require_admin(admin, "listar liquidaciones")
        items: list[PayoutListItem] = []
        for booking in await self._booking_repo.list_all():
            payout = booking.payout
            if payout is None:
                continue
            if status is not None and payout.status != status:
                continue
            if professional_id is not None and booking.professional_id != professional_id:
                continue
            if requires_clawback is not None and payout.requires_clawback != requires_clawback:
                continue
            items.append(
                PayoutListItem(
                    booking_ref=booking.booking_ref,
                    professional_id=booking.professional_id,
                    booking_status=booking.status.value,
                    payout=payout,
                )
            )
        return items


class ListAuditRecordsUseCase:
    def __init__(self, audit_log: AuditLog) -> None:
        self._audit_log = audit_log

    async def execute(self, admin: AdminIdentity, booking_ref: str | None = None) -> Sequence[AuditRecord]:
        require_admin(admin, "consultar la auditoría")
        return await self._audit_log.list_records(booking_ref)
