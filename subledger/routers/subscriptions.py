"""Subscription status endpoint."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from subledger.core.database import get_db
from subledger.services.subscription_status import SubscriptionStatus, SubscriptionStatusService

router = APIRouter()


@router.get("/status", response_model=SubscriptionStatus)
def get_subscription_status(
    transaction_key: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> SubscriptionStatus:
    """Check whether a subscription is currently active."""
    return SubscriptionStatusService(db).get_status(transaction_key=transaction_key)
