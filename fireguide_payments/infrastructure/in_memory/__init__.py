"""Implementaciones in-memory de los puertos (cableado por defecto)."""

from fireguide_payments.infrastructure.in_memory.audit_log import InMemoryAuditLog
from fireguide_payments.infrastructure.in_memory.booking_locks import InMemoryBookingLocks
from fireguide_payments.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from fireguide_payments.infrastructure.in_memory.commission_repo import InMemoryCommissionRepo
from fireguide_payments.infrastructure.in_memory.deliverable_store import InMemoryDeliverableStore
from fireguide_payments.infrastructure.in_memory.disbursement_client import StubDisbursementClient
from fireguide_payments.infrastructure.in_memory.gateway_client import StubGatewayClient
from fireguide_payments.infrastructure.in_memory.idempotency_repo import InMemoryIdempotencyRepo
from fireguide_payments.infrastructure.in_memory.refund_repo import InMemoryRefundRepo

__all__ = [
    "InMemoryAuditLog",
    "InMemoryBookingLocks",
    "InMemoryBookingRepo",
    "InMemoryCommissionRepo",
    "InMemoryDeliverableStore",
    "InMemoryIdempotencyRepo",
    "InMemoryRefundRepo",
    "StubDisbursementClient",
    "StubGatewayClient",
]
