"""PortOne webhook endpoint."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from subledger.core.database import get_db
from subledger.schemas.payment_event import PaymentEventResponse
from subledger.schemas.webhook import PortOneWebhookPayload, WebhookResponse
from subledger.services.payment_providers.portone import PortOneClient, get_portone_client
from subledger.services.schedule_planner import SchedulePlanner, get_schedule_planner
from subledger.services.subscription_webhooks import SubscriptionWebhookService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=WebhookResponse)
def handle_portone_webhook(
    payload: PortOneWebhookPayload,
    db: Session = Depends(get_db),
    gateway: PortOneClient = Depends(get_portone_client),
    planner: SchedulePlanner = Depends(get_schedule_planner),
) -> WebhookResponse:
    """Handle a PortOne payment notification.

    Answers 200 when the ledger fact is recorded (even if the follow-up
    schedule work at the gateway failed) or the status is not one we act
    on. Lookup and ledger failures surface as 500 so PortOne retries.
    """
    logger.info("PortOne notification received: %s %s", payload.payment_id, payload.status)

    service = SubscriptionWebhookService(db, gateway, planner=planner)
    outcome = service.dispatch(payload.payment_id, payload.status)

    return WebhookResponse(
        success=True,
        action=outcome.action,
        replayed=outcome.replayed,
        payment=PaymentEventResponse.model_validate(outcome.event) if outcome.event else None,
    )
