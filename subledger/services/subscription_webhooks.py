"""Service reacting to PortOne payment notifications.

A Paid notification records the charge and pre-books next month's charge
with the gateway. A Cancelled notification records a reversing row and
tries to withdraw that pre-booked charge. The ledger row is the source of
truth: gateway-side schedule work after it is best-effort and only logged
when it fails.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from subledger.core.exceptions import (
    DuplicateLedgerEventError,
    GatewayError,
    NoActivePaymentError,
)
from subledger.models.payment_event import PaymentEvent, PaymentEventStatus
from subledger.models.shared import as_utc, utc_now
from subledger.repositories.payment_event_repository import PaymentEventRepository
from subledger.services.payment_providers.portone import GatewayPayment, PortOneClient
from subledger.services.schedule_planner import SchedulePlanner

logger = logging.getLogger(__name__)

GATEWAY_STATUS_PAID = "Paid"
GATEWAY_STATUS_CANCELLED = "Cancelled"

# Search window around next_schedule_at when looking the schedule back up
SCHEDULE_LOOKUP_WINDOW = timedelta(days=1)


@dataclass
class WebhookOutcome:
    """What a notification did to the ledger."""

    action: str
    event: PaymentEvent | None = None
    replayed: bool = False


class SubscriptionWebhookService:
    """Dispatches gateway notifications to the Paid and Cancelled handlers."""

    def __init__(
        self,
        db: Session,
        gateway: PortOneClient,
        planner: SchedulePlanner | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.gateway = gateway
        self.planner = planner or SchedulePlanner()
        self.clock = clock
        self.event_repo = PaymentEventRepository(db)

    def dispatch(self, transaction_id: str, status: str) -> WebhookOutcome:
        """Route a notification by its gateway status.

        Unknown statuses are logged and discarded so the gateway does not
        retry them.
        """
        if status == GATEWAY_STATUS_PAID:
            return self.handle_paid(transaction_id)
        if status == GATEWAY_STATUS_CANCELLED:
            return self.handle_cancelled(transaction_id)

        logger.info("Ignoring notification for %s with unknown status %r", transaction_id, status)
        return WebhookOutcome(action="ignored")

    def handle_paid(self, transaction_id: str) -> WebhookOutcome:
        """Record a completed charge and reserve the next cycle.

        1. Look the payment up at the gateway (fatal on failure)
        2. Plan the coverage window and next attempt from the current instant
        3. Insert the Paid row (fatal on failure)
        4. If the payment has a billing key, reserve next month's charge
           under the planned schedule id (failure only logged)

        Raises:
            GatewayLookupError: The payment could not be fetched.
            LedgerWriteError: The Paid row could not be stored.
        """
        payment = self._lookup(transaction_id)

        existing = self.event_repo.get_latest(transaction_id, PaymentEventStatus.PAID)
        if existing is not None:
            logger.info("Paid notification for %s already recorded, replaying", transaction_id)
            return WebhookOutcome(action="paid", event=existing, replayed=True)

        plan = self.planner.plan(self.clock())
        try:
            event = self.event_repo.insert(
                transaction_key=transaction_id,
                amount=payment.amount_total,
                status=PaymentEventStatus.PAID,
                start_at=plan.start_at,
                end_at=plan.end_at,
                end_grace_at=plan.end_grace_at,
                next_schedule_at=plan.next_schedule_at,
                next_schedule_id=plan.next_schedule_id,
            )
        except DuplicateLedgerEventError:
            return self._replay(transaction_id, PaymentEventStatus.PAID, "paid")
        logger.info("Recorded Paid event for %s, amount %d", transaction_id, payment.amount_total)

        if payment.billing_key:
            self._reserve_next_cycle(payment, event)
        else:
            logger.info("Payment %s has no billing key, skipping next cycle reservation", transaction_id)

        return WebhookOutcome(action="paid", event=event)

    def handle_cancelled(self, transaction_id: str) -> WebhookOutcome:
        """Record a cancellation and withdraw the matching future charge.

        1. Look the payment up at the gateway (fatal on failure)
        2. Resolve its durable key (``paymentId``, else ``id``)
        3. Find the newest Paid row for that key (fatal if missing)
        4. Insert a Cancel row mirroring it with the amount negated
           (fatal on failure)
        5. Find and cancel the pre-booked next charge (failure only logged)

        Raises:
            GatewayLookupError: The payment could not be fetched.
            NoActivePaymentError: The ledger has no Paid row for the key.
            LedgerQueryError: The ledger could not be read.
            LedgerWriteError: The Cancel row could not be stored.
        """
        payment = self._lookup(transaction_id)
        transaction_key = payment.transaction_key

        existing = self.event_repo.get_latest(transaction_key, PaymentEventStatus.CANCEL)
        if existing is not None:
            logger.info("Cancel for %s already recorded, replaying", transaction_key)
            return WebhookOutcome(action="cancelled", event=existing, replayed=True)

        paid = self.event_repo.get_latest(transaction_key, PaymentEventStatus.PAID)
        if paid is None:
            logger.error("No Paid event found for %s, cannot record cancellation", transaction_key)
            raise NoActivePaymentError(transaction_key)

        try:
            event = self.event_repo.insert_reversal(paid)
        except DuplicateLedgerEventError:
            return self._replay(transaction_key, PaymentEventStatus.CANCEL, "cancelled")
        logger.info("Recorded Cancel event for %s, amount %d", transaction_key, event.amount)

        if payment.billing_key and paid.next_schedule_id:
            self._cancel_next_cycle(payment.billing_key, paid)
        else:
            logger.info("No billing key or next schedule for %s, nothing to withdraw", transaction_key)

        return WebhookOutcome(action="cancelled", event=event)

    def _lookup(self, transaction_id: str) -> GatewayPayment:
        try:
            return self.gateway.get_payment(transaction_id)
        except GatewayError as e:
            logger.error("Payment lookup failed for %s: %s", transaction_id, e)
            raise

    def _replay(self, transaction_key: str, status: PaymentEventStatus, action: str) -> WebhookOutcome:
        """Resolve a lost insert race by returning the row that won it."""
        logger.info("Concurrent %s notification for %s, replaying", status.value, transaction_key)
        event = self.event_repo.get_latest(transaction_key, status)
        return WebhookOutcome(action=action, event=event, replayed=True)

    def _reserve_next_cycle(self, payment: GatewayPayment, event: PaymentEvent) -> None:
        try:
            self.gateway.reserve_schedule(
                str(event.next_schedule_id),
                billing_key=str(payment.billing_key),
                order_name=payment.order_name,
                customer_id=payment.customer_id,
                amount=payment.amount_total,
                time_to_pay=as_utc(event.next_schedule_at),  # type: ignore[arg-type]
            )
        except Exception as e:
            logger.warning(
                "Could not reserve next cycle %s for %s: %s",
                event.next_schedule_id,
                event.transaction_key,
                e,
            )
            return
        logger.info(
            "Reserved next cycle %s for %s at %s",
            event.next_schedule_id,
            event.transaction_key,
            event.next_schedule_at,
        )

    def _cancel_next_cycle(self, billing_key: str, paid: PaymentEvent) -> None:
        if paid.next_schedule_at is None:
            logger.warning("Paid event for %s has no next_schedule_at", paid.transaction_key)
            return

        next_schedule_at = as_utc(paid.next_schedule_at)  # type: ignore[arg-type]
        try:
            schedules = self.gateway.list_schedules(
                billing_key=billing_key,
                from_=next_schedule_at - SCHEDULE_LOOKUP_WINDOW,
                until=next_schedule_at + SCHEDULE_LOOKUP_WINDOW,
            )
            target = next(
                (s for s in schedules if s.payment_id == paid.next_schedule_id),
                None,
            )
            if target is None:
                logger.warning(
                    "No pending schedule %s found for %s",
                    paid.next_schedule_id,
                    paid.transaction_key,
                )
                return
            self.gateway.cancel_schedules([target.id])
        except Exception as e:
            logger.warning(
                "Could not cancel next cycle %s for %s: %s",
                paid.next_schedule_id,
                paid.transaction_key,
                e,
            )
            return
        logger.info("Cancelled schedule %s for %s", target.id, paid.transaction_key)
