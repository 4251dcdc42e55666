"""Reglas de elegibilidad y techo de liquidación."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from fireguide_payments.domain.constants import DeliverableType
from fireguide_payments.domain.entities.payment import Payment, PaymentStatus
from fireguide_payments.domain.entities.payout import PayoutStatus
from fireguide_payments.domain.status_machine import BookingStatus

if TYPE_CHECKING:
    from fireguide_payments.domain.entities.booking import Booking


class IneligibilityReason(str, Enum):
    """Motivos por los que una reserva no puede liquidarse."""

    PAYMENT_NOT_SETTLED = "PAYMENT_NOT_SETTLED"
    PAYMENT_PARTIALLY_REFUNDED = "PAYMENT_PARTIALLY_REFUNDED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    DELIVERABLES_MISSING = "DELIVERABLES_MISSING"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    DISPUTE_OPEN = "DISPUTE_OPEN"
    PAYOUT_HELD = "PAYOUT_HELD"
    PAYOUT_ALREADY_EXISTS = "PAYOUT_ALREADY_EXISTS"


@dataclass(frozen=True)
class PayoutEligibility:
    """Resultado estructurado de la verificación de elegibilidad."""

    booking_ref: str
    reasons: tuple[IneligibilityReason, ...] = ()
    missing_deliverables: frozenset[DeliverableType] = field(default_factory=frozenset)
    amount: Decimal = Decimal("0.00")

    @property
    def is_eligible(self) -> bool:
        return not self.reasons

    @property
    def status(self) -> PayoutStatus:
        return PayoutStatus.ELIGIBLE if self.is_eligible else PayoutStatus.NOT_ELIGIBLE

    def reason_codes(self) -> list[str]:
        return [reason.value for reason in self.reasons]

    def to_dict(self) -> dict[str, Any]:
        return {
            "booking_ref": self.booking_ref,
            "status": self.status.value,
            "eligible": self.is_eligible,
            "reasons": self.reason_codes(),
            "missing_deliverables": sorted(d.value for d in self.missing_deliverables),
            "amount": format(self.amount, ".2f"),
        }


def payout_ceiling(payment: Payment) -> Decimal:
    """Máximo liquidable: monto - comisión - reembolsado (nunca negativo)."""
    ceiling = payment.amount - payment.commission_amount - payment.refunded_amount
    return max(ceiling, Decimal("0.00"))


def check_payout_eligibility(booking: "Booking") -> PayoutEligibility:
    """
    Verifica si la reserva puede generar o programar su liquidación.

    Una liquidación existente en ELIGIBLE cuenta como elegible; cualquier
    otro estado se reporta como PAYOUT_HELD o PAYOUT_ALREADY_EXISTS.
    """
    reasons: list[IneligibilityReason] = []
    payment = booking.payment
    payout = booking.payout

    if payment is None or payment.status not in (
        PaymentStatus.SUCCEEDED,
        PaymentStatus.PARTIALLY_REFUNDED,
        PaymentStatus.REFUNDED,
    ):
        reasons.append(IneligibilityReason.PAYMENT_NOT_SETTLED)
    elif payment.status == PaymentStatus.PARTIALLY_REFUNDED:
        reasons.append(IneligibilityReason.PAYMENT_PARTIALLY_REFUNDED)
    elif payment.status == PaymentStatus.REFUNDED:
        reasons.append(IneligibilityReason.PAYMENT_REFUNDED)

    if booking.status == BookingStatus.CANCELLED:
        reasons.append(IneligibilityReason.BOOKING_CANCELLED)

    missing = booking.missing_deliverables
    if missing:
        reasons.append(IneligibilityReason.DELIVERABLES_MISSING)

    if booking.dispute_open:
        reasons.append(IneligibilityReason.DISPUTE_OPEN)

    if booking.payout_hold_reason or (payout is not None and payout.status == PayoutStatus.HELD):
        reasons.append(IneligibilityReason.PAYOUT_HELD)
    elif payout is not None and payout.status != PayoutStatus.ELIGIBLE:
        reasons.append(IneligibilityReason.PAYOUT_ALREADY_EXISTS)

    amount = Decimal("0.00")
    if payment is not None and payment.status == PaymentStatus.SUCCEEDED:
        amount = min(payment.professional_earnings, payout_ceiling(payment))

    return PayoutEligibility(
        booking_ref=booking.booking_ref,
        reasons=tuple(reasons),
        missing_deliverables=missing,
        amount=amount,
    )


def payout_idempotency_key(booking_ref: str, payout_id: str, attempt: int) -> str:
    return f"{booking_ref}:payout:{payout_id}:{attempt}"
