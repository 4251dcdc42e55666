"""Entidad AuditRecord - registro inmutable de acciones administrativas."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any


class AuditAction(str, Enum):
    """Acciones administrativas auditadas."""

    APPROVE_REFUND = "APPROVE_REFUND"
    DENY_REFUND = "DENY_REFUND"
    FORCE_PAYOUT = "FORCE_PAYOUT"
    HOLD_PAYOUT = "HOLD_PAYOUT"
    RELEASE_PAYOUT = "RELEASE_PAYOUT"
    CLAWBACK_PAYOUT = "CLAWBACK_PAYOUT"
    UPDATE_COMMISSION_RATE = "UPDATE_COMMISSION_RATE"
    OPEN_DISPUTE = "OPEN_DISPUTE"
    RESOLVE_DISPUTE = "RESOLVE_DISPUTE"


@dataclass(frozen=True)
class AuditRecord:
    """Registro de auditoría; los detalles se exponen como mapping de sólo lectura."""

    audit_id: str
    action: AuditAction
    actor_id: str
    recorded_at: datetime
    booking_ref: str | None = None
    reason: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))
