from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status

from fireguide_payments.api.dependencies import get_use_cases
from fireguide_payments.api.schemas.bookings import (
    ApplyRefundRequest,
    BookingResponse,
    CancelBookingRequest,
    CheckoutResponse,
    CreateBookingRequest,
    CreatePayoutRequest,
    ExecutePayoutRequest,
    PayoutEligibilityResponse,
    PayoutSummary,
    QuoteRequest,
    QuoteResponse,
    RefundRequestSummary,
    RefundResponse,
    RequestRefundRequest,
    SubmitDeliverableRequest,
)

router = APIRouter()


@router.post("/quotes", response_model=QuoteResponse, status_code=status.HTTP_200_OK)
async def quote_price(
    payload: QuoteRequest,
    use_cases=Depends(get_use_cases),
) -> QuoteResponse:
    quote = use_cases["quote_price"].execute(payload.service_type, payload.attributes)
    return QuoteResponse(
        service_type=quote.service_type,
        final_price=quote.final_price,
        breakdown={key: _plain(value) for key, value in quote.breakdown.items()},
    )


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: CreateBookingRequest,
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["create_booking"].execute(
        service_type=payload.service_type,
        pricing=payload.pricing,
        customer_id=payload.customer_id,
        professional_id=payload.professional_id,
        service_date=payload.service_date,
    )
    return BookingResponse.from_booking(booking)


@router.get("/bookings/{booking_ref}", response_model=BookingResponse)
async def get_booking(booking_ref: str, use_cases=Depends(get_use_cases)) -> BookingResponse:
    booking = await use_cases["get_booking"].execute(booking_ref)
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/checkout", response_model=CheckoutResponse)
async def start_checkout(booking_ref: str, use_cases=Depends(get_use_cases)) -> CheckoutResponse:
    result = await use_cases["start_checkout"].execute(booking_ref)
    return CheckoutResponse(**vars(result))


@router.post("/bookings/{booking_ref}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_ref: str,
    payload: CancelBookingRequest,
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["cancel_booking"].execute(
        booking_ref, actor_id=payload.actor_id, reason=payload.reason
    )
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/deliverables", response_model=BookingResponse)
async def submit_deliverable(
    booking_ref: str,
    payload: SubmitDeliverableRequest,
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["submit_deliverable"].execute(
        booking_ref,
        deliverable_type=payload.deliverable_type,
        artifact_ref=payload.artifact_ref,
        submitted_by=payload.submitted_by,
    )
    return BookingResponse.from_booking(booking)


@router.post("/bookings/{booking_ref}/deliverables/sync", response_model=BookingResponse)
async def sync_deliverables(booking_ref: str, use_cases=Depends(get_use_cases)) -> BookingResponse:
    booking = await use_cases["sync_deliverables"].execute(booking_ref)
    return BookingResponse.from_booking(booking)


@router.post(
    "/bookings/{booking_ref}/refunds",
    response_model=RefundResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_refund(
    booking_ref: str,
    payload: RequestRefundRequest,
    use_cases=Depends(get_use_cases),
) -> RefundResponse:
    outcome = await use_cases["request_refund"].execute(
        booking_ref,
        amount=payload.amount,
        reason=payload.reason,
        requester_id=payload.requester_id,
        requester_type=payload.requester_type,
        custom_reason=payload.custom_reason,
    )
    return RefundResponse.from_outcome(outcome)


@router.get("/bookings/{booking_ref}/refunds", response_model=list[RefundRequestSummary])
async def list_booking_refunds(
    booking_ref: str,
    pending_only: bool = Query(default=False),
    use_cases=Depends(get_use_cases),
) -> list[RefundRequestSummary]:
    requests = await use_cases["list_refunds"].execute(booking_ref, pending_only=pending_only)
    return [RefundRequestSummary.from_request(request) for request in requests]


@router.post("/refunds/{refund_id}/apply", response_model=RefundResponse)
async def apply_refund(
    refund_id: str,
    payload: ApplyRefundRequest,
    use_cases=Depends(get_use_cases),
) -> RefundResponse:
    outcome = await use_cases["apply_refund"].execute(refund_id, actor_id=payload.actor_id)
    return RefundResponse.from_outcome(outcome)


@router.get(
    "/bookings/{booking_ref}/payout/eligibility",
    response_model=PayoutEligibilityResponse,
)
async def check_payout_eligibility(
    booking_ref: str,
    use_cases=Depends(get_use_cases),
) -> PayoutEligibilityResponse:
    eligibility = await use_cases["check_payout_eligibility"].execute(booking_ref)
    return PayoutEligibilityResponse(**eligibility.to_dict())


@router.post("/bookings/{booking_ref}/payout", response_model=PayoutSummary)
async def create_payout(
    booking_ref: str,
    payload: CreatePayoutRequest,
    use_cases=Depends(get_use_cases),
) -> PayoutSummary:
    payout = await use_cases["create_payout"].execute(
        booking_ref, account_ref=payload.account_ref, actor_id=payload.actor_id
    )
    return PayoutSummary.from_payout(payout)


@router.post("/bookings/{booking_ref}/payout/execute", response_model=PayoutSummary)
async def execute_payout(
    booking_ref: str,
    payload: ExecutePayoutRequest,
    use_cases=Depends(get_use_cases),
) -> PayoutSummary:
    payout = await use_cases["execute_payout"].execute(booking_ref, actor_id=payload.actor_id)
    return PayoutSummary.from_payout(payout)


def _plain(value):
    return str(value) if isinstance(value, Decimal) else value
