"""
Health check endpoints for monitoring and orchestration.

- /health: Basic liveness check (always returns 200)
- /health/ready: Readiness check; reports the circuit breaker of each money-movement client
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from fireguide_payments.api.dependencies import get_bundle

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "fireguide-payments"


@router.get("/health")
async def health_check():
    """
    Basic liveness probe.

    Returns 200 OK if the application is running.
    """
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/ready")
async def health_check_ready(bundle=Depends(get_bundle)):
    """
    Readiness probe.

    Not ready while any circuit is open: checkouts, refunds and payouts
    would be rejected without reaching the provider.
    """
    health_status = {"status": "ready", "checks": {}}

    for name in ("gateway_client", "disbursement_client"):
        breaker = getattr(bundle[name], "breaker", None)
        state = breaker.current_state if breaker is not None else "unguarded"
        health_status["checks"][name] = state
        if state == "open":
            health_status["status"] = "not_ready"

    if health_status["status"] != "ready":
        logger.warning("Readiness check: circuit open", extra={"checks": health_status["checks"]})
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@router.get("/health/live")
async def health_check_live():
    """Alias for /health for orchestrators that prefer the /live naming."""
    return {"status": "ok", "service": SERVICE_NAME}
