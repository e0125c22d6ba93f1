"""Billing-key payment API endpoints."""

import logging
import secrets
import string
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from subledger.core.config import settings
from subledger.core.exceptions import GatewayPaymentError
from subledger.schemas.payment import BillingKeyPaymentCreate, BillingKeyPaymentResponse
from subledger.services.payment_providers.portone import PortOneClient, get_portone_client

logger = logging.getLogger(__name__)

router = APIRouter()

_BASE36 = string.digits + string.ascii_lowercase


def generate_payment_id() -> str:
    """Build a unique payment id: ``payment_<epoch ms>_<7 base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"payment_{int(time.time() * 1000)}_{suffix}"


@router.post("/billing-key", response_model=BillingKeyPaymentResponse)
def pay_with_billing_key(
    data: BillingKeyPaymentCreate,
    gateway: PortOneClient = Depends(get_portone_client),
) -> BillingKeyPaymentResponse | JSONResponse:
    """Charge a stored billing key.

    Nothing is written to the ledger here; the resulting Paid notification
    records the charge and books the following month.
    """
    payment_id = generate_payment_id()
    webhook_url = settings.portone_webhook_url
    logger.info("Charging billing key for %s as %s (webhook %s)", data.customer.id, payment_id, webhook_url)

    try:
        gateway.pay_with_billing_key(
            payment_id,
            billing_key=data.billing_key,
            order_name=data.order_name,
            customer_id=data.customer.id,
            amount=data.amount,
            webhook_url=webhook_url,
        )
    except GatewayPaymentError as e:
        return JSONResponse(
            status_code=e.status_code or 502,
            content={
                "success": False,
                "error": "Payment could not be processed",
                "details": e.body,
            },
        )

    return BillingKeyPaymentResponse(success=True, payment_id=payment_id)
