"""PaymentEvent schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PaymentEventResponse(BaseModel):
    """Schema for a ledger row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_key: str
    amount: int
    status: str
    start_at: datetime
    end_at: datetime
    end_grace_at: datetime
    next_schedule_at: datetime | None = None
    next_schedule_id: str | None = None
    created_at: datetime | None = None
