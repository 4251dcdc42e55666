"""Entidad Booking - raíz de agregado de reserva, pago y liquidación."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from fireguide_payments.domain.constants import (
    REQUIRED_DELIVERABLES,
    SYSTEM_ACTOR,
    DeliverableType,
    ServiceType,
)
from fireguide_payments.domain.entities.deliverable import Deliverable
from fireguide_payments.domain.entities.payment import Payment
from fireguide_payments.domain.entities.payout import Payout
from fireguide_payments.domain.errors import DirectStatusChangeError, InvalidStateError
from fireguide_payments.domain.payout_rules import check_payout_eligibility
from fireguide_payments.domain.status_machine import (
    BOOKING_TRANSITIONS,
    TERMINAL_BOOKING_STATUSES,
    BookingStatus,
    derive_booking_status,
)
from fireguide_payments.domain.transitions import assert_transition


class StatusType(str, Enum):
    """Qué máquina de estados registró el cambio."""

    BOOKING = "booking"
    PAYMENT = "payment"
    PAYOUT = "payout"


@dataclass(frozen=True)
class StatusHistoryEntry:
    """Entrada del historial de cambios de estado."""

    status_type: StatusType
    previous: str | None
    new: str
    changed_by: str
    at: datetime
    reason: str | None = None


@dataclass
class Booking:
    """
    Raíz de agregado de una reserva.

    El estado no es asignable: se recalcula con reconcile() a partir del
    pago, la liquidación y los entregables. Las reservas nunca se eliminan.
    """

    booking_ref: str
    service_type: ServiceType
    final_price: Decimal
    customer_id: str | None = None
    professional_id: str | None = None
    pricing: dict[str, Any] = field(default_factory=dict)
    service_date: datetime | None = None

    payment: Payment | None = None
    previous_payments: list[Payment] = field(default_factory=list)
    payout: Payout | None = None
    deliverables: dict[DeliverableType, Deliverable] = field(default_factory=dict)

    dispute_open: bool = False
    dispute_reason: str | None = None
    payout_hold_reason: str | None = None

    # Control de concurrencia optimista
    version: int = 0
    status_history: list[StatusHistoryEntry] = field(default_factory=list)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    _status: BookingStatus = field(default=BookingStatus.CREATED, init=False, repr=False)

    # === Propiedades ===

    @property
    def status(self) -> BookingStatus:
        return self._status

    @status.setter
    def status(self, value: Any) -> None:
        raise DirectStatusChangeError(
            current_status=self._status.value,
            attempted_status=getattr(value, "value", str(value)),
        )

    @property
    def required_deliverables(self) -> frozenset[DeliverableType]:
        return REQUIRED_DELIVERABLES[self.service_type]

    @property
    def submitted_deliverables(self) -> frozenset[DeliverableType]:
        return frozenset(self.deliverables)

    @property
    def missing_deliverables(self) -> frozenset[DeliverableType]:
        return self.required_deliverables - self.submitted_deliverables

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_BOOKING_STATUSES

    # === Métodos de negocio ===

    def derived_status(self) -> BookingStatus:
        return derive_booking_status(
            self.payment,
            self.payout,
            self.submitted_deliverables,
            self.required_deliverables,
        )

    def submit_deliverable(self, deliverable: Deliverable) -> bool:
        """
        Registra un entregable.

        Returns:
            False si ese tipo ya estaba registrado.
        """
        if self.is_terminal:
            raise InvalidStateError(
                entity="booking",
                current_status=self._status.value,
                expected_status=[
                    s.value for s in BookingStatus if s not in TERMINAL_BOOKING_STATUSES
                ],
                operation="registrar un entregable",
            )
        if deliverable.deliverable_type in self.deliverables:
            return False
        self.deliverables[deliverable.deliverable_type] = deliverable
        return True

    def replace_payment(self, payment: Payment) -> None:
        """Reemplaza el pago vigente; el anterior queda en previous_payments."""
        if self.payment is not None:
            self.previous_payments.append(self.payment)
        self.payment = payment

    def record_change(
        self,
        status_type: StatusType,
        previous: Enum | None,
        new: Enum,
        changed_by: str,
        now: datetime,
        reason: str | None = None,
    ) -> None:
        """Agrega una entrada al historial si el estado cambió."""
        if previous == new:
            return
        self.status_history.append(
            StatusHistoryEntry(
                status_type=status_type,
                previous=previous.value if previous is not None else None,
                new=new.value,
                changed_by=changed_by,
                at=now,
                reason=reason,
            )
        )
        self.updated_at = now

    def promote_payout(self, now: datetime) -> Payout | None:
        """Crea la liquidación ELIGIBLE si la reserva acaba de volverse elegible."""
        if self.payout is not None:
            return None
        eligibility = check_payout_eligibility(self)
        if not eligibility.is_eligible:
            return None
        self.payout = Payout.create_eligible(self.booking_ref, eligibility.amount, now)
        return self.payout

    def reconcile(
        self, now: datetime, changed_by: str = SYSTEM_ACTOR, reason: str | None = None
    ) -> bool:
        """
        Ejecuta el Status Cascade.

        Promueve la liquidación si corresponde, deriva el estado y valida la
        transición contra la tabla de la reserva.

        Returns:
            True si el estado de la reserva cambió.
        """
        promoted = self.promote_payout(now)
        if promoted is not None:
            self.record_change(
                StatusType.PAYOUT,
                None,
                promoted.status,
                changed_by,
                now,
                reason="payout eligible",
            )

        target = self.derived_status()
        if target == self._status:
            return False

        assert_transition(
            "booking", BOOKING_TRANSITIONS, self._status, target, "actualizar la reserva"
        )
        previous = self._status
        self._status = target
        self.record_change(StatusType.BOOKING, previous, target, changed_by, now, reason)
        return True

    @classmethod
    def create(
        cls,
        booking_ref: str,
        service_type: ServiceType,
        final_price: Decimal,
        now: datetime,
        customer_id: str | None = None,
        professional_id: str | None = None,
        pricing: dict[str, Any] | None = None,
        service_date: datetime | None = None,
    ) -> "Booking":
        """Factory para crear una reserva nueva en CREATED."""
        booking = cls(
            booking_ref=booking_ref,
            service_type=service_type,
            final_price=final_price,
            customer_id=customer_id,
            professional_id=professional_id,
            pricing=dict(pricing or {}),
            service_date=service_date,
            created_at=now,
            updated_at=now,
        )
        booking.record_change(StatusType.BOOKING, None, BookingStatus.CREATED, SYSTEM_ACTOR, now)
        return booking
