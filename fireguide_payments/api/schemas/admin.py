from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, constr

from fireguide_payments.api.schemas.bookings import PaymentSummary, PayoutSummary
from fireguide_payments.application.dtos.results import PaymentListItem, PayoutListItem
from fireguide_payments.application.use_cases.admin import PayoutResolution
from fireguide_payments.domain.entities.audit_record import AuditRecord
from fireguide_payments.domain.entities.commission_config import CommissionConfig

Reason = constr(strip_whitespace=True, min_length=1)


class ResolveRefundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    note: str | None = None


class ForcePayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_ref: constr(strip_whitespace=True, min_length=1)
    reason: Reason


class HoldPayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: Reason


class ResolveHeldPayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resolution: PayoutResolution
    reason: str | None = None


class UpdateCommissionRateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rate: Decimal
    reason: str | None = None


class CommissionConfigResponse(BaseModel):
    service_type: str
    rate: str
    version: int
    modified_by: str
    modified_at: datetime | None = None

    @classmethod
    def from_config(cls, config: CommissionConfig) -> "CommissionConfigResponse":
        return cls(
            service_type=config.service_type.value,
            rate=str(config.rate),
            version=config.version,
            modified_by=config.modified_by,
            modified_at=config.modified_at,
        )


class DisputeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: Reason


class ResolveDisputeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resolution: Reason


class PaymentListItemResponse(BaseModel):
    booking_ref: str
    customer_id: str | None = None
    professional_id: str | None = None
    booking_status: str
    payment: PaymentSummary
    created_at: datetime | None = None

    @classmethod
    def from_item(cls, item: PaymentListItem) -> "PaymentListItemResponse":
        return cls(
            booking_ref=item.booking_ref,
            customer_id=item.customer_id,
            professional_id=item.professional_id,
            booking_status=item.booking_status,
            payment=PaymentSummary.from_payment(item.payment),
            created_at=item.created_at,
        )


class PayoutListItemResponse(BaseModel):
    booking_ref: str
    professional_id: str | None = None
    booking_status: str
    payout: PayoutSummary

    @classmethod
    def from_item(cls, item: PayoutListItem) -> "PayoutListItemResponse":
        return cls(
            booking_ref=item.booking_ref,
            professional_id=item.professional_id,
            booking_status=item.booking_status,
            payout=PayoutSummary.from_payout(item.payout),
        )


class AuditRecordResponse(BaseModel):
    audit_id: str
    action: str
    actor_id: str
    recorded_at: datetime
    booking_ref: str | None = None
    reason: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditRecordResponse":
        return cls(
            audit_id=record.audit_id,
            action=record.action.value,
            actor_id=record.actor_id,
            recorded_at=record.recorded_at,
            booking_ref=record.booking_ref,
            reason=record.reason,
            details={key: _plain(value) for key, value in record.details.items()},
        )


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value"):
        return value.value
    return value

