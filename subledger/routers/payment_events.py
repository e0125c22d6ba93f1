"""Payment ledger API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from subledger.core.database import get_db
from subledger.models.payment_event import PaymentEvent, PaymentEventStatus
from subledger.repositories.payment_event_repository import PaymentEventRepository
from subledger.schemas.payment_event import PaymentEventResponse

router = APIRouter()


@router.get("/", response_model=list[PaymentEventResponse])
def list_payment_events(
    transaction_key: str | None = None,
    status: PaymentEventStatus | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[PaymentEvent]:
    """List ledger rows, newest first."""
    repo = PaymentEventRepository(db)
    return repo.query(transaction_key=transaction_key, status=status, limit=limit)
