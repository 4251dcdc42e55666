"""Entidad Payment - representa el cobro al cliente por una reserva."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from fireguide_payments.domain.errors import ExceedsRefundableBalanceError, InvalidStateError
from fireguide_payments.domain.transitions import assert_transition
from fireguide_payments.domain.value_objects.money import Money


class PaymentStatus(str, Enum):
    """Estados posibles de un pago."""

    PENDING = "PENDING"
    AUTHORIZED = "AUTHORIZED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {
            PaymentStatus.AUTHORIZED,
            PaymentStatus.SUCCEEDED,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
        }
    ),
    PaymentStatus.AUTHORIZED: frozenset(
        {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.SUCCEEDED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.PARTIALLY_REFUNDED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}

SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatus.SUCCEEDED, PaymentStatus.PARTIALLY_REFUNDED})
OPEN_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.AUTHORIZED})


@dataclass
class Payment:
    """
    Entidad que representa un intento de cobro asociado a una reserva.

    El reparto de comisión se congela al iniciar el checkout: cambios
    posteriores de tasa no afectan pagos existentes.
    """

    # Identificadores
    payment_id: str
    booking_ref: str
    attempt: int = 1

    # Monto
    amount: Decimal = Decimal("0")
    refunded_amount: Decimal = Decimal("0")

    # Estado
    status: PaymentStatus = PaymentStatus.PENDING

    # Pasarela
    session_ref: str | None = None
    checkout_url: str | None = None
    gateway_reference: str | None = None
    failure_reason: str | None = None

    # Reparto capturado en el checkout
    commission_rate: Decimal = Decimal("0")
    commission_amount: Decimal = Decimal("0")
    professional_earnings: Decimal = Decimal("0")
    commission_version: int | None = None

    applied_refund_ids: list[str] = field(default_factory=list)

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None
    settled_at: datetime | None = None

    # === Propiedades ===

    @property
    def money(self) -> Money:
        """Retorna el monto como Value Object Money."""
        return Money.of(self.amount)

    @property
    def refundable_amount(self) -> Decimal:
        """Saldo que todavía puede reembolsarse."""
        return self.amount - self.refunded_amount

    @property
    def is_settled(self) -> bool:
        """El cliente pagó y el dinero no fue devuelto por completo."""
        return self.status in SETTLED_PAYMENT_STATUSES

    @property
    def is_open(self) -> bool:
        """El checkout sigue esperando resultado de la pasarela."""
        return self.status in OPEN_PAYMENT_STATUSES

    @property
    def is_final(self) -> bool:
        """Verifica si el pago está en un estado final (no puede cambiar)."""
        return not PAYMENT_TRANSITIONS[self.status]

    # === Métodos de negocio ===

    def _transition(self, target: PaymentStatus, operation: str, now: datetime) -> None:
        assert_transition("payment", PAYMENT_TRANSITIONS, self.status, target, operation)
        self.status = target
        self.updated_at = now

    def authorize(self, now: datetime) -> None:
        """Marca el pago como autorizado por la pasarela."""
        self._transition(PaymentStatus.AUTHORIZED, "autorizar el pago", now)

    def succeed(self, now: datetime, gateway_reference: str | None = None) -> None:
        """Marca el pago como cobrado exitosamente."""
        self._transition(PaymentStatus.SUCCEEDED, "confirmar el pago", now)
        self.settled_at = now
        if gateway_reference:
            self.gateway_reference = gateway_reference

    def fail(self, now: datetime, reason: str | None = None) -> None:
        """Marca el pago como fallido."""
        self._transition(PaymentStatus.FAILED, "marcar el pago como fallido", now)
        self.failure_reason = reason

    def cancel(self, now: datetime) -> None:
        """Anula un checkout que no llegó a liquidarse."""
        self._transition(PaymentStatus.CANCELLED, "anular el pago", now)

    def record_refund(self, refund_id: str, amount: Decimal, now: datetime) -> bool:
        """
        Registra un reembolso aplicado.

        Returns:
            False si el reembolso ya estaba aplicado (no-op), True en otro caso.
        """
        if refund_id in self.applied_refund_ids:
            return False
        if not self.is_settled:
            raise InvalidStateError(
                entity="payment",
                current_status=self.status.value,
                expected_status=sorted(s.value for s in SETTLED_PAYMENT_STATUSES),
                operation="reembolsar el pago",
            )
        if amount > self.refundable_amount:
            raise ExceedsRefundableBalanceError(
                payment_id=self.payment_id,
                requested=amount,
                refundable=self.refundable_amount,
            )

        self.refunded_amount += amount
        target = (
            PaymentStatus.REFUNDED
            if self.refunded_amount == self.amount
            else PaymentStatus.PARTIALLY_REFUNDED
        )
        self._transition(target, "reembolsar el pago", now)
        self.applied_refund_ids.append(refund_id)
        return True

    @classmethod
    def create_pending(
        cls,
        payment_id: str,
        booking_ref: str,
        amount: Decimal,
        commission_rate: Decimal,
        commission_amount: Decimal,
        professional_earnings: Decimal,
        commission_version: int | None,
        now: datetime,
        attempt: int = 1,
    ) -> "Payment":
        """Factory para crear un pago pendiente."""
        return cls(
            payment_id=payment_id,
            booking_ref=booking_ref,
            attempt=attempt,
            amount=amount,
            status=PaymentStatus.PENDING,
            commission_rate=commission_rate,
            commission_amount=commission_amount,
            professional_earnings=professional_earnings,
            commission_version=commission_version,
            created_at=now,
            updated_at=now,
        )
