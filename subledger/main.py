import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from subledger.core.config import settings
from subledger.core.exceptions import SubledgerError
from subledger.core.logging_config import configure_logging
from subledger.routers import payment_events, payments, portone, subscriptions

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Webhooks", "description": "Receive payment notifications from PortOne."},
    {"name": "Payments", "description": "Charge stored billing keys."},
    {"name": "Subscriptions", "description": "Check current subscription status."},
    {"name": "Payment Events", "description": "Read the append-only payment ledger."},
]

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Monthly subscription ledger driven by PortOne payment notifications. "
        "Records charges and cancellations, books the next cycle with the "
        "gateway, and answers whether a subscription is active."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SubledgerError)
async def subledger_error_handler(request: Request, exc: SubledgerError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": exc.message},
    )


app.include_router(portone.router, prefix="/v1/portone", tags=["Webhooks"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(subscriptions.router, prefix="/v1/subscriptions", tags=["Subscriptions"])
app.include_router(payment_events.router, prefix="/v1/payment_events", tags=["Payment Events"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
