"""DTOs de resultado de los casos de uso."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fireguide_payments.domain.entities.payment import Payment
from fireguide_payments.domain.entities.payout import Payout
from fireguide_payments.domain.entities.refund_request import RefundRequest


@dataclass
class CheckoutResult:
    booking_ref: str
    payment_id: str
    session_ref: str | None
    checkout_url: str | None
    amount: Decimal
    commission_amount: Decimal
    professional_earnings: Decimal
    payment_status: str
    booking_status: str
    reused: bool = False


@dataclass
class GatewayResultOutcome:
    event_id: str
    booking_ref: str
    payment_id: str
    payment_status: str
    booking_status: str
    changed: bool
    duplicate: bool = False


@dataclass
class RefundOutcome:
    request: RefundRequest
    applied: bool
    payment_status: str
    booking_status: str
    payout_status: str | None = None


@dataclass
class PaymentListItem:
    booking_ref: str
    customer_id: str | None
    professional_id: str | None
    booking_status: str
    payment: Payment
    created_at: datetime | None = None


@dataclass
class PayoutListItem:
    booking_ref: str
    professional_id: str | None
    booking_status: str
    payout: Payout
