"""PaymentEvent repository - the ledger store."""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from subledger.core.exceptions import (
    DuplicateLedgerEventError,
    LedgerQueryError,
    LedgerWriteError,
)
from subledger.models.payment_event import PaymentEvent, PaymentEventStatus

logger = logging.getLogger(__name__)


class PaymentEventRepository:
    """Append-only access to the payment_events table.

    There is no update or delete: cancellations are new rows.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(
        self,
        *,
        transaction_key: str,
        amount: int,
        status: PaymentEventStatus,
        start_at: datetime,
        end_at: datetime,
        end_grace_at: datetime,
        next_schedule_at: datetime | None = None,
        next_schedule_id: str | None = None,
    ) -> PaymentEvent:
        """Insert a ledger row and return it with store-assigned fields loaded.

        Raises:
            DuplicateLedgerEventError: A row with the same key and status exists.
            LedgerWriteError: Any other store failure.
        """
        event = PaymentEvent(
            transaction_key=transaction_key,
            amount=int(amount),
            status=status.value,
            start_at=start_at,
            end_at=end_at,
            end_grace_at=end_grace_at,
            next_schedule_at=next_schedule_at,
            next_schedule_id=next_schedule_id,
        )
        return self._add(event)

    def insert_reversal(self, paid: PaymentEvent) -> PaymentEvent:
        """Insert the Cancel row for ``paid``.

        Window and schedule fields are copied unchanged and the amount is
        negated.

        Raises:
            DuplicateLedgerEventError: The charge already has a Cancel row.
            LedgerWriteError: Any other store failure.
        """
        event = PaymentEvent(
            transaction_key=paid.transaction_key,
            amount=-paid.amount,
            status=PaymentEventStatus.CANCEL.value,
            start_at=paid.start_at,
            end_at=paid.end_at,
            end_grace_at=paid.end_grace_at,
            next_schedule_at=paid.next_schedule_at,
            next_schedule_id=paid.next_schedule_id,
        )
        return self._add(event)

    def _add(self, event: PaymentEvent) -> PaymentEvent:
        transaction_key = str(event.transaction_key)
        status = str(event.status)
        try:
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateLedgerEventError(transaction_key, status) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Ledger insert failed for %s (%s): %s", transaction_key, status, e)
            raise LedgerWriteError(f"Ledger insert failed: {e}") from e
        return event

    def query(
        self,
        transaction_key: str | None = None,
        status: PaymentEventStatus | None = None,
        limit: int | None = None,
    ) -> list[PaymentEvent]:
        """Return rows newest first, optionally filtered.

        Rows sharing ``created_at`` are ordered by insertion.
        """
        try:
            query = self.db.query(PaymentEvent)
            if transaction_key is not None:
                query = query.filter(PaymentEvent.transaction_key == transaction_key)
            if status is not None:
                query = query.filter(PaymentEvent.status == status.value)
            query = query.order_by(PaymentEvent.created_at.desc(), PaymentEvent.id.desc())
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Ledger query failed: %s", e)
            raise LedgerQueryError(f"Ledger query failed: {e}") from e

    def get_latest(
        self,
        transaction_key: str,
        status: PaymentEventStatus | None = None,
    ) -> PaymentEvent | None:
        """Get the most recently created row for a transaction key."""
        rows = self.query(transaction_key=transaction_key, status=status, limit=1)
        return rows[0] if rows else None
