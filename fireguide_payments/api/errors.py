"""
Maps domain and gateway failures to HTTP responses.

Every domain error carries a machine-readable code plus details, so the
response body explains why an operation was rejected.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pybreaker import CircuitBreakerError

from fireguide_payments.application.interfaces.gateway_client import (
    GatewayError,
    InvalidCallbackError,
)
from fireguide_payments.domain.errors import (
    AlreadyPaidError,
    BookingNotConfirmableError,
    BookingNotFoundError,
    DomainError,
    ExceedsRefundableBalanceError,
    GatewayAmountMismatchError,
    IdempotencyConflictError,
    InsufficientAuthorityError,
    InvalidMoneyError,
    InvalidPricingInputError,
    InvalidRateError,
    InvalidStateError,
    NotEligibleError,
    OptimisticLockError,
    RefundRequestNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (BookingNotFoundError, status.HTTP_404_NOT_FOUND),
    (RefundRequestNotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientAuthorityError, status.HTTP_403_FORBIDDEN),
    (InvalidPricingInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidRateError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidMoneyError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (GatewayAmountMismatchError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ExceedsRefundableBalanceError, status.HTTP_409_CONFLICT),
    (AlreadyPaidError, status.HTTP_409_CONFLICT),
    (BookingNotConfirmableError, status.HTTP_409_CONFLICT),
    (NotEligibleError, status.HTTP_409_CONFLICT),
    (OptimisticLockError, status.HTTP_409_CONFLICT),
    (IdempotencyConflictError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
)


def status_for(exc: DomainError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "Domain error",
        extra={"code": exc.code, "path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.to_dict()},
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if isinstance(exc, InvalidCallbackError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "error": {"code": "INVALID_CALLBACK"}},
        )
    logger.error(
        "Gateway call failed",
        extra={"operation": exc.operation, "retryable": exc.retryable, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": "Payment provider unavailable",
            "error": {
                "code": "GATEWAY_ERROR",
                "operation": exc.operation,
                "retryable": exc.retryable,
            },
        },
    )


async def circuit_open_handler(request: Request, exc: CircuitBreakerError) -> JSONResponse:
    logger.error("Circuit open, call rejected", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": "Payment provider unavailable",
            "error": {"code": "CIRCUIT_OPEN", "retryable": True},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(CircuitBreakerError, circuit_open_handler)
