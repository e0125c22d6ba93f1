"""Exceptions raised by the subscription ledger.

Hierarchy:
    SubledgerError
    ├── ConfigurationError - required gateway credentials are missing
    ├── GatewayError - HTTP-level failure talking to the payment gateway
    │   ├── GatewayLookupError - payment lookup failed
    │   ├── GatewayReservationError - next-cycle schedule could not be placed
    │   ├── GatewayScheduleQueryError - schedule listing failed
    │   ├── GatewayScheduleCancelError - schedule cancellation failed
    │   └── GatewayPaymentError - billing-key charge was rejected
    ├── LedgerError - failure talking to the ledger store
    │   ├── LedgerWriteError
    │   │   └── DuplicateLedgerEventError - row for (transaction_key, status) exists
    │   └── LedgerQueryError
    └── NoActivePaymentError - cancellation references a charge the ledger never saw

Lookup and ledger failures abort a webhook with HTTP 500 so the gateway
retries. Reservation and schedule-cancel failures are logged by the
handlers and never reach the caller.
"""

from typing import Any


class SubledgerError(Exception):
    """Base exception for the subscription ledger."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SubledgerError):
    """Raised when a required setting is empty."""


class GatewayError(SubledgerError):
    """Base class for payment gateway failures.

    ``status_code`` is None when the request never got a response
    (connection refused, timeout).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class GatewayLookupError(GatewayError):
    pass


class GatewayReservationError(GatewayError):
    pass


class GatewayScheduleQueryError(GatewayError):
    pass


class GatewayScheduleCancelError(GatewayError):
    pass


class GatewayPaymentError(GatewayError):
    pass


class LedgerError(SubledgerError):
    """Base class for ledger store failures."""


class LedgerWriteError(LedgerError):
    pass


class DuplicateLedgerEventError(LedgerWriteError):
    """An event with the same transaction key and status is already recorded."""

    def __init__(self, transaction_key: str, status: str):
        super().__init__(
            f"Payment event already recorded: {transaction_key} ({status})",
            details={"transaction_key": transaction_key, "status": status},
        )
        self.transaction_key = transaction_key
        self.status = status


class LedgerQueryError(LedgerError):
    pass


class NoActivePaymentError(SubledgerError):
    """No Paid ledger row exists for the transaction being cancelled."""

    def __init__(self, transaction_key: str):
        super().__init__(
            f"No paid payment event found for transaction {transaction_key}",
            details={"transaction_key": transaction_key},
        )
        self.transaction_key = transaction_key
