"""Interfaces (Puertos) de la capa de aplicación."""

from fireguide_payments.application.interfaces.audit_log import AuditLog
from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock, FakeClock
from fireguide_payments.application.interfaces.commission_repo import CommissionRepo
from fireguide_payments.application.interfaces.deliverable_store import DeliverableStore
from fireguide_payments.application.interfaces.disbursement_client import (
    DisbursementClient,
    DisbursementResult,
    DisbursementStatus,
)
from fireguide_payments.application.interfaces.gateway_client import (
    CheckoutSession,
    GatewayClient,
    GatewayError,
    GatewayRefund,
    InvalidCallbackError,
)
from fireguide_payments.application.interfaces.id_generator import FakeIdGenerator, IdGenerator
from fireguide_payments.application.interfaces.idempotency_repo import (
    IdempotencyRecord,
    IdempotencyRepo,
)
from fireguide_payments.application.interfaces.refund_repo import RefundRepo

__all__ = [
    # Repositories
    "BookingRepo",
    "RefundRepo",
    "CommissionRepo",
    "IdempotencyRepo",
    "IdempotencyRecord",
    "AuditLog",
    # Gateways
    "GatewayClient",
    "GatewayError",
    "InvalidCallbackError",
    "CheckoutSession",
    "GatewayRefund",
    "DisbursementClient",
    "DisbursementResult",
    "DisbursementStatus",
    "DeliverableStore",
    # Infrastructure
    "BookingLocks",
    # Utilities
    "Clock",
    "FakeClock",
    "IdGenerator",
    "FakeIdGenerator",
]
