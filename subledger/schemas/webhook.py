"""Gateway notification schemas."""

from pydantic import BaseModel, ConfigDict

from subledger.schemas.payment_event import PaymentEventResponse


class PortOneWebhookPayload(BaseModel):
    """Notification body posted by PortOne.

    ``status`` is left open: statuses other than Paid and Cancelled are
    accepted and discarded.
    """

    model_config = ConfigDict(extra="ignore")

    payment_id: str
    status: str


class WebhookResponse(BaseModel):
    success: bool = True
    action: str
    replayed: bool = False
    payment: PaymentEventResponse | None = None
