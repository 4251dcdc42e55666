"""
Admin endpoints. Every route takes the caller identity from the X-Admin-Id and
X-Admin-Roles headers; the use cases reject callers without the admin role.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from fireguide_payments.api.dependencies import get_admin_identity, get_use_cases
from fireguide_payments.api.schemas.admin import (
    AuditRecordResponse,
    CommissionConfigResponse,
    DisputeRequest,
    ForcePayoutRequest,
    HoldPayoutRequest,
    PaymentListItemResponse,
    PayoutListItemResponse,
    ResolveDisputeRequest,
    ResolveHeldPayoutRequest,
    ResolveRefundRequest,
    UpdateCommissionRateRequest,
)
from fireguide_payments.api.schemas.bookings import (
    BookingResponse,
    PayoutSummary,
    RefundRequestSummary,
    RefundResponse,
)
from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.entities.payment import PaymentStatus
from fireguide_payments.domain.entities.payout import PayoutStatus
from fireguide_payments.domain.value_objects.admin_identity import require_admin

router = APIRouter()


@router.get("/refunds/pending", response_model=list[RefundRequestSummary])
async def list_pending_refunds(
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> list[RefundRequestSummary]:
    require_admin(admin, "listar reembolsos pendientes")
    requests = await use_cases["list_refunds"].execute()
    return [RefundRequestSummary.from_request(request) for request in requests]


@router.post("/refunds/{refund_id}/approve", response_model=RefundResponse)
async def approve_refund(
    refund_id: str,
    payload: ResolveRefundRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> RefundResponse:
    outcome = await use_cases["admin_approve_refund"].execute(admin, refund_id, note=payload.note)
    return RefundResponse.from_outcome(outcome)


@router.post("/refunds/{refund_id}/deny", response_model=RefundRequestSummary)
async def deny_refund(
    refund_id: str,
    payload: ResolveRefundRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> RefundRequestSummary:
    request = await use_cases["admin_deny_refund"].execute(admin, refund_id, note=payload.note)
    return RefundRequestSummary.from_request(request)


@router.post("/bookings/{booking_ref}/payout/force", response_model=PayoutSummary)
async def force_payout(
    booking_ref: str,
    payload: ForcePayoutRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> PayoutSummary:
    payout = await use_cases["admin_force_payout"].execute(
        admin, booking_ref, account_ref=payload.account_ref, reason=payload.reason
    )
    return PayoutSummary.from_payout(payout)


@router.post("/bookings/{booking_ref}/payout/hold", response_model=BookingResponse)
async def hold_payout(
    booking_ref: str,
    payload: HoldPayoutRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["admin_hold_payout"].execute(admin, booking_ref, reason=payload.reason)
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/payout/resolve", response_model=BookingResponse)
async def resolve_held_payout(
    booking_ref: str,
    payload: ResolveHeldPayoutRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["admin_resolve_held_payout"].execute(
        admin, booking_ref, resolution=payload.resolution, reason=payload.reason
    )
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/dispute", response_model=BookingResponse)
async def open_dispute(
    booking_ref: str,
    payload: DisputeRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["admin_open_dispute"].execute(admin, booking_ref, reason=payload.reason)
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/dispute/resolve", response_model=BookingResponse)
async def resolve_dispute(
    booking_ref: str,
    payload: ResolveDisputeRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["admin_resolve_dispute"].execute(
        admin, booking_ref, resolution=payload.resolution
    )
    return BookingResponse.from_booking(booking)


@router.put("/commission/{service_type}", response_model=CommissionConfigResponse)
async def update_commission_rate(
    service_type: ServiceType,
    payload: UpdateCommissionRateRequest,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> CommissionConfigResponse:
    config = await use_cases["admin_update_commission_rate"].execute(
        admin, service_type, rate=payload.rate, reason=payload.reason
    )
    return CommissionConfigResponse.from_config(config)


@router.get("/commission/{service_type}/history", response_model=list[CommissionConfigResponse])
async def commission_history(
    service_type: ServiceType,
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> list[CommissionConfigResponse]:
    require_admin(admin, "consultar el historial de comisiones")
    history = await use_cases["commission_engine"].history(service_type)
    return [CommissionConfigResponse.from_config(config) for config in history]


@router.get("/payments", response_model=list[PaymentListItemResponse])
async def list_payments(
    status: PaymentStatus | None = Query(default=None),
    customer_id: str | None = Query(default=None),
    professional_id: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> list[PaymentListItemResponse]:
    items = await use_cases["list_payments"].execute(
        admin,
        status=status,
        customer_id=customer_id,
        professional_id=professional_id,
        date_from=date_from,
        date_to=date_to,
    )
    return [PaymentListItemResponse.from_item(item) for item in items]


@router.get("/payouts", response_model=list[PayoutListItemResponse])
async def list_payouts(
    status: PayoutStatus | None = Query(default=None),
    professional_id: str | None = Query(default=None),
    requires_clawback: bool | None = Query(default=None),
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> list[PayoutListItemResponse]:
    items = await use_cases["list_payouts"].execute(
        admin,
        status=status,
        professional_id=professional_id,
        requires_clawback=requires_clawback,
    )
    return [PayoutListItemResponse.from_item(item) for item in items]


@router.get("/audit", response_model=list[AuditRecordResponse])
async def list_audit_records(
    booking_ref: str | None = Query(default=None),
    admin=Depends(get_admin_identity),
    use_cases=Depends(get_use_cases),
) -> list[AuditRecordResponse]:
    records = await use_cases["list_audit_records"].execute(admin, booking_ref=booking_ref)
    return [AuditRecordResponse.from_record(record) for record in records]
