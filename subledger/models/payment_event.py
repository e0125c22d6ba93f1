"""PaymentEvent model - append-only ledger of charges and cancellations."""

from enum import Enum

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, UniqueConstraint, func

from subledger.core.database import Base


class PaymentEventStatus(str, Enum):
    """Ledger row status.

    Distinct from the gateway's own payment statuses (``Paid``/``Cancelled``).
    """

    PAID = "Paid"
    CANCEL = "Cancel"


class PaymentEvent(Base):
    """One ledger entry. Rows are never updated or deleted."""

    __tablename__ = "payment_events"
    __table_args__ = (
        UniqueConstraint("transaction_key", "status", name="uq_payment_events_transaction_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_key = Column(String(255), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False)

    # Coverage window
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    end_grace_at = Column(DateTime(timezone=True), nullable=False)

    # Next cycle reservation
    next_schedule_at = Column(DateTime(timezone=True), nullable=True)
    next_schedule_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
