from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, condecimal, constr

from fireguide_payments.domain.constants import DeliverableType, RefundReason, ServiceType
from fireguide_payments.domain.entities.booking import Booking, StatusHistoryEntry
from fireguide_payments.domain.entities.payment import Payment
from fireguide_payments.domain.entities.payout import Payout
from fireguide_payments.domain.entities.refund_request import RequesterType
from fireguide_payments.domain.status_machine import workflow_stage

Money = Annotated[
    Decimal,
    Field(max_digits=12, decimal_places=2),
    PlainSerializer(lambda v: format(v, ".2f"), return_type=str, when_used="json"),
]
PositiveMoney = condecimal(max_digits=12, decimal_places=2, gt=0)


class QuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_type: ServiceType
    attributes: dict[str, Any] = Field(default_factory=dict)


class QuoteResponse(BaseModel):
    service_type: ServiceType
    final_price: Money
    breakdown: dict[str, Any] = Field(default_factory=dict)


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_type: ServiceType
    pricing: dict[str, Any] = Field(default_factory=dict)
    customer_id: constr(strip_whitespace=True, min_length=1) | None = None
    professional_id: constr(strip_whitespace=True, min_length=1) | None = None
    service_date: datetime | None = None


class PaymentSummary(BaseModel):
    payment_id: str
    attempt: int
    status: str
    amount: Money
    refunded_amount: Money
    commission_rate: str
    commission_amount: Money
    professional_earnings: Money
    commission_version: int | None = None
    session_ref: str | None = None
    checkout_url: str | None = None
    failure_reason: str | None = None
    settled_at: datetime | None = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentSummary":
        return cls(
            payment_id=payment.payment_id,
            attempt=payment.attempt,
            status=payment.status.value,
            amount=payment.amount,
            refunded_amount=payment.refunded_amount,
            commission_rate=str(payment.commission_rate),
            commission_amount=payment.commission_amount,
            professional_earnings=payment.professional_earnings,
            commission_version=payment.commission_version,
            session_ref=payment.session_ref,
            checkout_url=payment.checkout_url,
            failure_reason=payment.failure_reason,
            settled_at=payment.settled_at,
        )


class PayoutSummary(BaseModel):
    payout_id: str
    status: str
    amount: Money
    attempts: int
    account_ref: str | None = None
    transfer_ref: str | None = None
    failure_reason: str | None = None
    hold_reason: str | None = None
    forced_by: str | None = None
    requires_clawback: bool = False

    @classmethod
    def from_payout(cls, payout: Payout) -> "PayoutSummary":
        return cls(
            payout_id=payout.payout_id,
            status=payout.status.value,
            amount=payout.amount,
            attempts=payout.attempts,
            account_ref=payout.account_ref,
            transfer_ref=payout.transfer_ref,
            failure_reason=payout.failure_reason,
            hold_reason=payout.hold_reason,
            forced_by=payout.forced_by,
            requires_clawback=payout.requires_clawback,
        )


class StatusHistoryItem(BaseModel):
    status_type: str
    previous: str | None = None
    new: str
    changed_by: str
    at: datetime
    reason: str | None = None

    @classmethod
    def from_entry(cls, entry: StatusHistoryEntry) -> "StatusHistoryItem":
        return cls(
            status_type=entry.status_type.value,
            previous=entry.previous,
            new=entry.new,
            changed_by=entry.changed_by,
            at=entry.at,
            reason=entry.reason,
        )


class BookingResponse(BaseModel):
    booking_ref: str
    service_type: ServiceType
    status: str
    workflow_stage: str
    final_price: Money
    customer_id: str | None = None
    professional_id: str | None = None
    service_date: datetime | None = None
    payment: PaymentSummary | None = None
    payout: PayoutSummary | None = None
    deliverables: list[DeliverableType] = Field(default_factory=list)
    missing_deliverables: list[DeliverableType] = Field(default_factory=list)
    dispute_open: bool = False
    payout_hold_reason: str | None = None
    version: int
    status_history: list[StatusHistoryItem] = Field(default_factory=list)

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            booking_ref=booking.booking_ref,
            service_type=booking.service_type,
            status=booking.status.value,
            workflow_stage=workflow_stage(booking),
            final_price=booking.final_price,
            customer_id=booking.customer_id,
            professional_id=booking.professional_id,
            service_date=booking.service_date,
            payment=PaymentSummary.from_payment(booking.payment) if booking.payment else None,
            payout=PayoutSummary.from_payout(booking.payout) if booking.payout else None,
            deliverables=sorted(booking.submitted_deliverables, key=lambda d: d.value),
            missing_deliverables=sorted(booking.missing_deliverables, key=lambda d: d.value),
            dispute_open=booking.dispute_open,
            payout_hold_reason=booking.payout_hold_reason,
            version=booking.version,
            status_history=[StatusHistoryItem.from_entry(e) for e in booking.status_history],
        )


class CancelBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    actor_id: constr(strip_whitespace=True, min_length=1)
    reason: str | None = None


class CheckoutResponse(BaseModel):
    booking_ref: str
    payment_id: str
    session_ref: str | None = None
    checkout_url: str | None = None
    amount: Money
    commission_amount: Money
    professional_earnings: Money
    payment_status: str
    booking_status: str
    reused: bool = False


class GatewayResultResponse(BaseModel):
    event_id: str
    booking_ref: str
    payment_id: str
    payment_status: str
    booking_status: str
    changed: bool
    duplicate: bool = False


class SubmitDeliverableRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    deliverable_type: DeliverableType
    artifact_ref: str | None = None
    submitted_by: constr(strip_whitespace=True, min_length=1) = "system"


class RequestRefundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: PositiveMoney
    reason: RefundReason
    requester_id: constr(strip_whitespace=True, min_length=1)
    requester_type: RequesterType = RequesterType.CUSTOMER
    custom_reason: str | None = None


class RefundRequestSummary(BaseModel):
    refund_id: str
    booking_ref: str
    payment_id: str
    amount: Money
    reason: RefundReason
    requester_id: str
    requester_type: RequesterType
    custom_reason: str | None = None
    status: str
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution_note: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_request(cls, request) -> "RefundRequestSummary":
        return cls(
            refund_id=request.refund_id,
            booking_ref=request.booking_ref,
            payment_id=request.payment_id,
            amount=request.amount,
            reason=request.reason,
            requester_id=request.requester_id,
            requester_type=request.requester_type,
            custom_reason=request.custom_reason,
            status=request.status.value,
            resolved_by=request.resolved_by,
            resolved_at=request.resolved_at,
            resolution_note=request.resolution_note,
            created_at=request.created_at,
        )


class RefundResponse(BaseModel):
    request: RefundRequestSummary
    applied: bool
    payment_status: str
    booking_status: str
    payout_status: str | None = None

    @classmethod
    def from_outcome(cls, outcome) -> "RefundResponse":
        return cls(
            request=RefundRequestSummary.from_request(outcome.request),
            applied=outcome.applied,
            payment_status=outcome.payment_status,
            booking_status=outcome.booking_status,
            payout_status=outcome.payout_status,
        )


class ApplyRefundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    actor_id: constr(strip_whitespace=True, min_length=1) = "system"


class PayoutEligibilityResponse(BaseModel):
    booking_ref: str
    eligible: bool
    status: str
    reasons: list[str] = Field(default_factory=list)
    missing_deliverables: list[str] = Field(default_factory=list)
    amount: Money


class CreatePayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_ref: constr(strip_whitespace=True, min_length=1)
    actor_id: constr(strip_whitespace=True, min_length=1) = "system"


class ExecutePayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    actor_id: constr(strip_whitespace=True, min_length=1) = "system"
