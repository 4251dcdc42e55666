"""Reglas de reembolso: validación de saldo, política y cascada a la liquidación."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fireguide_payments.domain.constants import RefundReason
from fireguide_payments.domain.entities.payment import SETTLED_PAYMENT_STATUSES, Payment
from fireguide_payments.domain.entities.payout import Payout, PayoutStatus
from fireguide_payments.domain.entities.refund_request import RequesterType
from fireguide_payments.domain.errors import (
    ExceedsRefundableBalanceError,
    InvalidMoneyError,
    InvalidStateError,
)
from fireguide_payments.domain.value_objects.money import CENT


def validate_refund_amount(payment: Payment, amount: Decimal) -> None:
    """
    Verifica que el pago admita un reembolso por `amount`.

    El límite exacto (monto == saldo reembolsable) es válido.
    """
    if payment.status not in SETTLED_PAYMENT_STATUSES:
        raise InvalidStateError(
            entity="payment",
            current_status=payment.status.value,
            expected_status=sorted(s.value for s in SETTLED_PAYMENT_STATUSES),
            operation="solicitar un reembolso",
        )
    if amount <= 0 or amount != amount.quantize(CENT):
        raise InvalidMoneyError(f"El monto del reembolso debe ser positivo con 2 decimales: {amount}")
    if amount > payment.refundable_amount:
        raise ExceedsRefundableBalanceError(
            payment_id=payment.payment_id,
            requested=amount,
            refundable=payment.refundable_amount,
        )


@dataclass(frozen=True)
class RefundDecision:
    auto_approve: bool
    rationale: str


def evaluate_refund_policy(
    reason: RefundReason,
    requester_type: RequesterType,
    now: datetime,
    service_date: datetime | None,
    dispute_open: bool = False,
) -> RefundDecision:
    """Decide si la solicitud se aprueba automáticamente o espera a un admin."""
    if reason == RefundReason.CUSTOMER_CANCELLED_BEFORE_SERVICE:
        if requester_type == RequesterType.CUSTOMER and service_date is not None and now < service_date:
            return RefundDecision(True, "customer cancelled before service date")
        return RefundDecision(False, "service date has passed")

    if reason == RefundReason.PROFESSIONAL_CANCELLED:
        if requester_type in (RequesterType.PROFESSIONAL, RequesterType.ADMIN):
            return RefundDecision(True, "professional cancelled")
        return RefundDecision(False, "only professional or admin can trigger this refund")

    if reason == RefundReason.SERVICE_NOT_DELIVERED:
        if requester_type == RequesterType.ADMIN:
            return RefundDecision(True, "admin confirmed service not delivered")
        return RefundDecision(False, "requires admin approval")

    if reason == RefundReason.DISPUTE_RESOLVED_IN_CUSTOMER_FAVOR:
        if requester_type == RequesterType.ADMIN and dispute_open:
            return RefundDecision(True, "dispute resolved in customer favour")
        return RefundDecision(False, "no active dispute or not an admin")

    return RefundDecision(False, "requires admin approval")


def cascade_refund_to_payout(payout: Payout | None, now: datetime) -> PayoutStatus | None:
    """
    Ajusta la liquidación después de un reembolso.

    ELIGIBLE pasa a CANCELLED, SCHEDULED/FAILED quedan retenidas y una
    liquidación ya pagada se marca para recuperar fondos.

    Returns:
        El estado previo si hubo un cambio de estado, si no None.
    """
    if payout is None:
        return None
    previous = payout.status
    if previous == PayoutStatus.ELIGIBLE:
        payout.cancel(now, reason="payment refunded before payout was scheduled")
        return previous
    if previous in (PayoutStatus.SCHEDULED, PayoutStatus.FAILED):
        payout.hold(now, reason="payment refunded after payout was scheduled")
        return previous
    if previous == PayoutStatus.PAID:
        payout.flag_clawback(now)
    return None


def refund_idempotency_key(booking_ref: str, refund_id: str) -> str:
    return f"{booking_ref}:refund:{refund_id}"
