"""Service deriving current subscription status from the ledger."""

from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.orm import Session

from subledger.models.payment_event import PaymentEvent, PaymentEventStatus
from subledger.models.shared import as_utc, utc_now
from subledger.repositories.payment_event_repository import PaymentEventRepository


class SubscriptionStatus(BaseModel):
    is_subscribed: bool
    transaction_key: str | None = None


class SubscriptionStatusService:
    """Read-only view over the payment ledger."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = PaymentEventRepository(db)

    def get_status(
        self,
        transaction_key: str | None = None,
        now: datetime | None = None,
    ) -> SubscriptionStatus:
        """Check whether any subscription is active at ``now``.

        The newest row per transaction key decides that key's state; a key
        is active when that row is Paid and ``start_at <= now <= end_grace_at``.
        When several keys are active the first one found (newest row) wins.

        Raises:
            LedgerQueryError: If the ledger cannot be read.
        """
        now = as_utc(now) if now is not None else utc_now()
        rows = self.event_repo.query(transaction_key=transaction_key)

        latest: dict[str, PaymentEvent] = {}
        for row in rows:
            latest.setdefault(str(row.transaction_key), row)

        for key, row in latest.items():
            if self._is_active(row, now):
                return SubscriptionStatus(is_subscribed=True, transaction_key=key)

        return SubscriptionStatus(is_subscribed=False, transaction_key=None)

    @staticmethod
    def _is_active(row: PaymentEvent, now: datetime) -> bool:
        if row.status != PaymentEventStatus.PAID.value:
            return False
        start_at = as_utc(row.start_at)  # type: ignore[arg-type]
        end_grace_at = as_utc(row.end_grace_at)  # type: ignore[arg-type]
        return start_at <= now <= end_grace_at
