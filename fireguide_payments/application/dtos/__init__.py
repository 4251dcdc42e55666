"""DTOs de la capa de aplicación."""

from fireguide_payments.application.dtos.gateway_outcome import (
    GatewayOutcome,
    normalize_outcome_status,
)
from fireguide_payments.application.dtos.results import (
    CheckoutResult,
    GatewayResultOutcome,
    PaymentListItem,
    PayoutListItem,
    RefundOutcome,
)

__all__ = [
    "CheckoutResult",
    "GatewayOutcome",
    "GatewayResultOutcome",
    "PaymentListItem",
    "PayoutListItem",
    "RefundOutcome",
    "normalize_outcome_status",
]
