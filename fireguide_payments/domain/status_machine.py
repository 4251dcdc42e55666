"""
Status Cascade: máquina de estados de la reserva.

El estado de una reserva nunca se asigna; siempre se deriva de su pago,
su liquidación y sus entregables mediante derive_booking_status.
"""

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from fireguide_payments.domain.constants import DeliverableType
from fireguide_payments.domain.entities.payment import Payment, PaymentStatus
from fireguide_payments.domain.entities.payout import Payout, PayoutStatus

if TYPE_CHECKING:
    from fireguide_payments.domain.entities.booking import Booking


class BookingStatus(str, Enum):
    """Estados del ciclo de vida de una reserva."""

    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


# Saltos hacia adelante son válidos; retrocesos nunca.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.CREATED: frozenset(
        {
            BookingStatus.CONFIRMED,
            BookingStatus.IN_PROGRESS,
            BookingStatus.COMPLETED,
            BookingStatus.CLOSED,
            BookingStatus.CANCELLED,
        }
    ),
    BookingStatus.CONFIRMED: frozenset(
        {
            BookingStatus.IN_PROGRESS,
            BookingStatus.COMPLETED,
            BookingStatus.CLOSED,
            BookingStatus.CANCELLED,
        }
    ),
    BookingStatus.IN_PROGRESS: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CLOSED, BookingStatus.CANCELLED}
    ),
    BookingStatus.COMPLETED: frozenset({BookingStatus.CLOSED}),
    BookingStatus.CLOSED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_BOOKING_STATUSES = frozenset({BookingStatus.CLOSED, BookingStatus.CANCELLED})

_UNSETTLED = frozenset({PaymentStatus.PENDING, PaymentStatus.AUTHORIZED, PaymentStatus.FAILED})


def derive_booking_status(
    payment: Payment | None,
    payout: Payout | None,
    deliverables: Iterable[DeliverableType],
    required: Iterable[DeliverableType],
) -> BookingStatus:
    """
    Deriva el estado de la reserva. Función pura.

    Args:
        payment: Pago vigente de la reserva (o None).
        payout: Liquidación de la reserva (o None).
        deliverables: Tipos de entregables enviados.
        required: Tipos de entregables requeridos por el servicio.
    """
    submitted = frozenset(deliverables)
    required_set = frozenset(required)
    work_complete = required_set <= submitted

    if payment is None or payment.status in _UNSETTLED:
        return BookingStatus.CREATED

    if payment.status == PaymentStatus.CANCELLED:
        return BookingStatus.CANCELLED

    if payment.status == PaymentStatus.REFUNDED:
        if not work_complete:
            return BookingStatus.CANCELLED
        if payout is not None and payout.is_open:
            return BookingStatus.COMPLETED
        return BookingStatus.CLOSED

    # SUCCEEDED / PARTIALLY_REFUNDED
    if payout is not None and payout.status == PayoutStatus.PAID:
        return BookingStatus.CLOSED
    if work_complete:
        return BookingStatus.COMPLETED
    if submitted & required_set:
        return BookingStatus.IN_PROGRESS
    return BookingStatus.CONFIRMED


def is_terminal(booking: "Booking") -> bool:
    return booking.status in TERMINAL_BOOKING_STATUSES


_WORKFLOW_STAGES: dict[BookingStatus, str] = {
    BookingStatus.CREATED: "Awaiting Payment",
    BookingStatus.CONFIRMED: "Service Scheduled",
    BookingStatus.IN_PROGRESS: "Work In Progress",
    BookingStatus.COMPLETED: "Awaiting Payout",
    BookingStatus.CLOSED: "Completed",
    BookingStatus.CANCELLED: "Cancelled",
}


def workflow_stage(booking: "Booking") -> str:
    """Etiqueta legible de la etapa del flujo para paneles."""
    if booking.dispute_open and not is_terminal(booking):
        return "In Dispute"
    return _WORKFLOW_STAGES[booking.status]
