"""Reglas del ciclo de vida del pago del cliente."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from fireguide_payments.domain.constants import PRICE_MAXIMUM, PRICE_MINIMUM
from fireguide_payments.domain.entities.payment import Payment, PaymentStatus
from fireguide_payments.domain.errors import (
    AlreadyPaidError,
    BookingNotConfirmableError,
    GatewayAmountMismatchError,
    InvalidStateError,
)
from fireguide_payments.domain.pricing import validate_price
from fireguide_payments.domain.status_machine import BookingStatus

if TYPE_CHECKING:
    from fireguide_payments.domain.entities.booking import Booking


class GatewayOutcomeStatus(str, Enum):
    """Resultado normalizado informado por la pasarela."""

    AUTHORIZED = "AUTHORIZED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


_OUTCOME_TARGETS = {
    GatewayOutcomeStatus.AUTHORIZED: PaymentStatus.AUTHORIZED,
    GatewayOutcomeStatus.SUCCEEDED: PaymentStatus.SUCCEEDED,
    GatewayOutcomeStatus.FAILED: PaymentStatus.FAILED,
}

# Resultados que llegan tarde pero ya están implícitos en el estado actual
_ALREADY_IMPLIED = {
    GatewayOutcomeStatus.AUTHORIZED: frozenset(
        {PaymentStatus.SUCCEEDED, PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    GatewayOutcomeStatus.SUCCEEDED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    GatewayOutcomeStatus.FAILED: frozenset(),
}


def validate_payment_conditions(
    booking: "Booking",
    minimum: Decimal = PRICE_MINIMUM,
    maximum: Decimal = PRICE_MAXIMUM,
) -> None:
    """
    Verifica que la reserva admita iniciar un cobro.

    Raises:
        AlreadyPaidError: El pago vigente ya está liquidado.
        BookingNotConfirmableError: Reserva terminal o con datos incompletos.
        InvalidPricingInputError: El precio final está fuera de límites.
    """
    payment = booking.payment
    if payment is not None and payment.is_settled:
        raise AlreadyPaidError(
            booking_ref=booking.booking_ref,
            payment_id=payment.payment_id,
            current_status=payment.status.value,
        )

    if booking.status in (BookingStatus.CANCELLED, BookingStatus.CLOSED):
        raise BookingNotConfirmableError(
            booking_ref=booking.booking_ref,
            current_status=booking.status.value,
            reasons=["la reserva está cerrada o cancelada"],
        )

    missing: list[str] = []
    if not booking.customer_id:
        missing.append("falta customer_id")
    if not booking.professional_id:
        missing.append("falta professional_id")
    if booking.service_date is None:
        missing.append("falta service_date")
    if missing:
        raise BookingNotConfirmableError(
            booking_ref=booking.booking_ref,
            current_status=booking.status.value,
            reasons=missing,
        )

    validate_price(booking.final_price, minimum, maximum)


def apply_gateway_result(
    payment: Payment,
    outcome: GatewayOutcomeStatus,
    now: datetime,
    reported_amount: Decimal | None = None,
    gateway_reference: str | None = None,
    failure_reason: str | None = None,
) -> bool:
    """
    Aplica el resultado de la pasarela al pago.

    Es idempotente: el mismo resultado dos veces no cambia nada.

    Returns:
        True si el estado del pago cambió.

    Raises:
        InvalidStateError: Resultado en conflicto con un pago ya resuelto.
        GatewayAmountMismatchError: El monto informado no coincide.
    """
    target = _OUTCOME_TARGETS[outcome]
    if payment.status == target or payment.status in _ALREADY_IMPLIED[outcome]:
        return False

    if payment.is_final or payment.is_settled:
        raise InvalidStateError(
            entity="payment",
            current_status=payment.status.value,
            expected_status=[PaymentStatus.PENDING.value, PaymentStatus.AUTHORIZED.value],
            operation=f"aplicar el resultado {outcome.value} de la pasarela",
        )

    if (
        outcome != GatewayOutcomeStatus.FAILED
        and reported_amount is not None
        and reported_amount != payment.amount
    ):
        raise GatewayAmountMismatchError(
            payment_id=payment.payment_id,
            expected=payment.amount,
            reported=reported_amount,
        )

    if outcome == GatewayOutcomeStatus.AUTHORIZED:
        payment.authorize(now)
    elif outcome == GatewayOutcomeStatus.SUCCEEDED:
        payment.succeed(now, gateway_reference)
    else:
        payment.fail(now, failure_reason)
    return True


def checkout_idempotency_key(booking_ref: str, attempt: int) -> str:
    return f"{booking_ref}:checkout:{attempt}"
