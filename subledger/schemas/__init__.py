from subledger.schemas.payment import (
    BillingKeyPaymentCreate,
    BillingKeyPaymentResponse,
    CustomerRef,
)
from subledger.schemas.payment_event import PaymentEventResponse
from subledger.schemas.webhook import PortOneWebhookPayload, WebhookResponse

__all__ = [
    "BillingKeyPaymentCreate",
    "BillingKeyPaymentResponse",
    "CustomerRef",
    "PaymentEventResponse",
    "PortOneWebhookPayload",
    "WebhookResponse",
]
