"""Entidad Payout - liquidación de ganancias al profesional."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from fireguide_payments.domain.transitions import assert_transition


class PayoutStatus(str, Enum):
    """Estados posibles de una liquidación."""

    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    ELIGIBLE = "ELIGIBLE"
    SCHEDULED = "SCHEDULED"
    PAID = "PAID"
    FAILED = "FAILED"
    HELD = "HELD"
    CANCELLED = "CANCELLED"


PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.NOT_ELIGIBLE: frozenset({PayoutStatus.ELIGIBLE, PayoutStatus.HELD}),
    PayoutStatus.ELIGIBLE: frozenset(
        {PayoutStatus.SCHEDULED, PayoutStatus.HELD, PayoutStatus.CANCELLED}
    ),
    PayoutStatus.SCHEDULED: frozenset(
        {PayoutStatus.PAID, PayoutStatus.FAILED, PayoutStatus.HELD}
    ),
    PayoutStatus.FAILED: frozenset(
        {PayoutStatus.SCHEDULED, PayoutStatus.HELD, PayoutStatus.CANCELLED}
    ),
    PayoutStatus.HELD: frozenset(
        {PayoutStatus.ELIGIBLE, PayoutStatus.SCHEDULED, PayoutStatus.CANCELLED}
    ),
    PayoutStatus.PAID: frozenset(),
    PayoutStatus.CANCELLED: frozenset(),
}

# Liquidaciones que todavía pueden terminar en una transferencia
OPEN_PAYOUT_STATUSES = frozenset(
    {PayoutStatus.ELIGIBLE, PayoutStatus.SCHEDULED, PayoutStatus.FAILED, PayoutStatus.HELD}
)


def payout_id_for(booking_ref: str) -> str:
    """Cada reserva tiene a lo sumo una liquidación; su id es determinista."""
    return f"PO-{booking_ref}"


@dataclass
class Payout:
    """
    Entidad que representa la transferencia de ganancias al profesional.

    El monto nunca supera el techo de liquidación
    (monto del pago - comisión - reembolsado).
    """

    payout_id: str
    booking_ref: str
    amount: Decimal
    status: PayoutStatus = PayoutStatus.ELIGIBLE

    account_ref: str | None = None
    transfer_ref: str | None = None
    attempts: int = 0
    failure_reason: str | None = None

    # Intervención administrativa
    hold_reason: str | None = None
    forced_by: str | None = None
    force_reason: str | None = None
    requires_clawback: bool = False

    # Timestamps
    eligible_at: datetime | None = None
    scheduled_at: datetime | None = None
    executed_at: datetime | None = None
    failed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PAYOUT_STATUSES

    @property
    def is_final(self) -> bool:
        return not PAYOUT_TRANSITIONS[self.status]

    def _transition(self, target: PayoutStatus, operation: str, now: datetime) -> None:
        assert_transition("payout", PAYOUT_TRANSITIONS, self.status, target, operation)
        self.status = target
        self.updated_at = now

    def schedule(self, now: datetime, account_ref: str | None = None) -> None:
        """Programa la transferencia hacia la cuenta del profesional."""
        self._transition(PayoutStatus.SCHEDULED, "programar la liquidación", now)
        if account_ref:
            self.account_ref = account_ref
        self.scheduled_at = now

    @property
    def next_attempt(self) -> int:
        """Número del próximo intento; sólo avanza con un resultado definitivo."""
        return self.attempts + 1

    def mark_paid(self, now: datetime, transfer_ref: str | None) -> None:
        self._transition(PayoutStatus.PAID, "marcar la liquidación como pagada", now)
        self.attempts += 1
        self.transfer_ref = transfer_ref
        self.executed_at = now
        self.failure_reason = None

    def mark_failed(self, now: datetime, reason: str | None) -> None:
        self._transition(PayoutStatus.FAILED, "marcar la liquidación como fallida", now)
        self.attempts += 1
        self.failure_reason = reason
        self.failed_at = now

    def hold(self, now: datetime, reason: str) -> None:
        """Retiene la liquidación hasta resolución administrativa."""
        if self.status == PayoutStatus.HELD:
            self.hold_reason = reason
            return
        self._transition(PayoutStatus.HELD, "retener la liquidación", now)
        self.hold_reason = reason

    def release(self, now: datetime, ceiling: Decimal) -> None:
        """
        Libera una liquidación retenida.

        El monto se recorta al techo vigente; vuelve a SCHEDULED si ya hay
        cuenta destino, si no a ELIGIBLE.
        """
        target = PayoutStatus.SCHEDULED if self.account_ref else PayoutStatus.ELIGIBLE
        self._transition(target, "liberar la liquidación", now)
        self.amount = min(self.amount, ceiling)
        self.hold_reason = None
        if target == PayoutStatus.SCHEDULED:
            self.scheduled_at = now

    def cancel(self, now: datetime, reason: str | None = None) -> None:
        self._transition(PayoutStatus.CANCELLED, "cancelar la liquidación", now)
        if reason:
            self.failure_reason = reason

    def flag_clawback(self, now: datetime) -> None:
        """Marca una liquidación ya pagada para recuperar fondos fuera del motor."""
        self.requires_clawback = True
        self.updated_at = now

    @classmethod
    def create_eligible(cls, booking_ref: str, amount: Decimal, now: datetime) -> "Payout":
        """Factory para crear una liquidación elegible."""
        return cls(
            payout_id=payout_id_for(booking_ref),
            booking_ref=booking_ref,
            amount=amount,
            status=PayoutStatus.ELIGIBLE,
            eligible_at=now,
            updated_at=now,
        )
