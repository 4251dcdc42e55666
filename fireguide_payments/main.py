import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fireguide_payments import __version__
from fireguide_payments.api.errors import register_exception_handlers
from fireguide_payments.api.routers.admin import router as admin_router
from fireguide_payments.api.routers.bookings import router as bookings_router
from fireguide_payments.api.routers.health import router as health_router
from fireguide_payments.api.routers.webhooks import router as webhooks_router
from fireguide_payments.config import get_settings

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fire Guide Payments API",
    version=__version__,
)

register_exception_handlers(app)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(webhooks_router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(admin_router, prefix="/api/v1/admin", tags=["Admin"])
