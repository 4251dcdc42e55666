"""Entidad RefundRequest - solicitud de reembolso sobre un pago."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from fireguide_payments.domain.constants import RefundReason
from fireguide_payments.domain.errors import InvalidStateError


class RefundStatus(str, Enum):
    """Estados de una solicitud de reembolso."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class RequesterType(str, Enum):
    """Quién solicita el reembolso."""

    CUSTOMER = "CUSTOMER"
    PROFESSIONAL = "PROFESSIONAL"
    ADMIN = "ADMIN"


@dataclass
class RefundRequest:
    """
    Solicitud de reembolso.

    Se resuelve una única vez; después de la resolución no cambia.
    """

    refund_id: str
    booking_ref: str
    payment_id: str
    amount: Decimal
    reason: RefundReason
    requester_id: str
    requester_type: RequesterType = RequesterType.CUSTOMER
    custom_reason: str | None = None

    status: RefundStatus = RefundStatus.PENDING
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution_note: str | None = None

    created_at: datetime | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status != RefundStatus.PENDING

    def _resolve(
        self,
        status: RefundStatus,
        operation: str,
        resolved_by: str,
        now: datetime,
        note: str | None,
    ) -> None:
        if self.is_resolved:
            raise InvalidStateError(
                entity="refund_request",
                current_status=self.status.value,
                expected_status=RefundStatus.PENDING.value,
                operation=operation,
            )
        self.status = status
        self.resolved_by = resolved_by
        self.resolved_at = now
        self.resolution_note = note

    def approve(self, resolved_by: str, now: datetime, note: str | None = None) -> None:
        self._resolve(RefundStatus.APPROVED, "aprobar el reembolso", resolved_by, now, note)

    def deny(self, resolved_by: str, now: datetime, note: str | None = None) -> None:
        self._resolve(RefundStatus.DENIED, "rechazar el reembolso", resolved_by, now, note)
