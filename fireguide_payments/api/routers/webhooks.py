from fastapi import APIRouter, Depends, Request, status

from fireguide_payments.api.dependencies import get_use_cases
from fireguide_payments.api.schemas.bookings import GatewayResultResponse

router = APIRouter()

SIGNATURE_HEADER = "X-Gateway-Signature"


@router.post("/webhooks/gateway", response_model=GatewayResultResponse, status_code=status.HTTP_200_OK)
async def gateway_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> GatewayResultResponse:
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    result = await use_cases["apply_gateway_result"].execute(payload=raw_body, signature=signature)
    return GatewayResultResponse(**vars(result))
