"""PortOne (v2 REST API) gateway client.

Covers the calls the subscription ledger needs: payment lookup, billing-key
charges, and the schedule store used to pre-book the next monthly charge.
Any failed call, including a 2xx answer whose body cannot be read, is
raised as the gateway error class of that operation; retries are left to
the caller.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx

from subledger.core.config import settings
from subledger.core.exceptions import (
    ConfigurationError,
    GatewayError,
    GatewayLookupError,
    GatewayPaymentError,
    GatewayReservationError,
    GatewayScheduleCancelError,
    GatewayScheduleQueryError,
)

logger = logging.getLogger(__name__)


def _isoformat(value: datetime) -> str:
    """Serialize as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _excerpt(resp: httpx.Response) -> str | None:
    return resp.text[:1000] if resp.text else None


@dataclass
class GatewayPayment:
    """The parts of a PortOne payment record the ledger uses."""

    id: str
    amount_total: int
    order_name: str
    customer_id: str | None = None
    billing_key: str | None = None
    payment_id: str | None = None

    @property
    def transaction_key(self) -> str:
        """Durable key of the payment; ``paymentId`` wins over ``id`` when present."""
        return self.payment_id or self.id

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GatewayPayment":
        """Build from a payment lookup body.

        Raises:
            ValueError: If the record has no ``id`` or no integer ``amount.total``.
        """
        if not data.get("id"):
            raise ValueError("payment record has no id")
        amount = data.get("amount")
        total = amount.get("total") if isinstance(amount, dict) else None
        if isinstance(total, bool) or not isinstance(total, int):
            raise ValueError(f"payment record has no integer amount.total: {total!r}")
        customer = data.get("customer")
        if not isinstance(customer, dict):
            customer = {}
        return cls(
            id=str(data["id"]),
            payment_id=data.get("paymentId") or None,
            amount_total=total,
            order_name=data.get("orderName", ""),
            billing_key=data.get("billingKey") or None,
            customer_id=customer.get("id"),
        )


@dataclass
class GatewaySchedule:
    """A future charge held by the gateway."""

    id: str
    payment_id: str


class PortOneClient:
    """Synchronous PortOne API client."""

    def __init__(
        self,
        api_secret: str | None = None,
        base_url: str | None = None,
        currency: str | None = None,
        timeout: float | None = None,
    ):
        self.api_secret = api_secret if api_secret is not None else settings.PORTONE_API_SECRET
        if not self.api_secret:
            raise ConfigurationError("PORTONE_API_SECRET is not configured")
        self.base_url = (base_url or settings.PORTONE_API_BASE).rstrip("/")
        self.currency = currency or settings.PORTONE_CURRENCY
        self.timeout = timeout or settings.PORTONE_TIMEOUT_SECONDS

    def _request(
        self,
        method: str,
        endpoint: str,
        error_cls: type[GatewayError],
        action: str,
        params: dict[str, str] | None = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request to the PortOne API."""
        url = f"{self.base_url}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"PortOne {self.api_secret}",
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.request(method, url, headers=headers, params=params, json=data)
        except httpx.HTTPError as e:
            raise error_cls(f"PortOne {action} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            body = _excerpt(resp)
            logger.error("PortOne %s failed (%s): %s", action, resp.status_code, body)
            raise error_cls(
                f"PortOne {action} failed: {resp.status_code}",
                status_code=resp.status_code,
                body=body,
            )
        return resp

    def _parse_json(
        self,
        resp: httpx.Response,
        error_cls: type[GatewayError],
        action: str,
    ) -> dict[str, Any]:
        """Decode a 2xx body that must be a JSON object."""
        try:
            body = resp.json()
        except ValueError as e:
            logger.error("PortOne %s returned a non-JSON body: %s", action, resp.text[:200])
            raise error_cls(
                f"PortOne {action} returned an unreadable body",
                status_code=resp.status_code,
                body=_excerpt(resp),
            ) from e
        if not isinstance(body, dict):
            logger.error("PortOne %s returned %s instead of an object", action, type(body).__name__)
            raise error_cls(
                f"PortOne {action} returned an unexpected body",
                status_code=resp.status_code,
                body=_excerpt(resp),
            )
        return body

    def get_payment(self, payment_id: str) -> GatewayPayment:
        """Look up a payment by its id."""
        resp = self._request(
            "GET",
            f"/payments/{quote(payment_id, safe='')}",
            GatewayLookupError,
            "payment lookup",
        )
        data = self._parse_json(resp, GatewayLookupError, "payment lookup")
        try:
            return GatewayPayment.from_api(data)
        except ValueError as e:
            logger.error("PortOne payment lookup for %s returned an invalid record: %s", payment_id, e)
            raise GatewayLookupError(
                f"PortOne payment lookup returned an invalid record: {e}",
                status_code=resp.status_code,
                body=_excerpt(resp),
            ) from e

    def reserve_schedule(
        self,
        new_payment_id: str,
        *,
        billing_key: str,
        order_name: str,
        customer_id: str | None,
        amount: int,
        time_to_pay: datetime,
    ) -> None:
        """Ask the gateway to charge ``billing_key`` at ``time_to_pay`` under ``new_payment_id``."""
        self._request(
            "POST",
            f"/payments/{quote(new_payment_id, safe='')}/schedule",
            GatewayReservationError,
            "schedule reservation",
            data={
                "payment": {
                    "billingKey": billing_key,
                    "orderName": order_name,
                    "customer": {"id": customer_id},
                    "amount": {"total": int(amount)},
                    "currency": self.currency,
                },
                "timeToPay": _isoformat(time_to_pay),
            },
        )

    def list_schedules(
        self,
        *,
        billing_key: str,
        from_: datetime,
        until: datetime,
    ) -> list[GatewaySchedule]:
        """List schedules for a billing key whose execution time falls in the window."""
        resp = self._request(
            "GET",
            "/payment-schedules",
            GatewayScheduleQueryError,
            "schedule query",
            params={
                "filter.billingKey": billing_key,
                "filter.from": _isoformat(from_),
                "filter.until": _isoformat(until),
            },
        )
        items = self._parse_json(resp, GatewayScheduleQueryError, "schedule query").get("items") or []
        if not isinstance(items, list):
            raise GatewayScheduleQueryError(
                "PortOne schedule query returned an unexpected body",
                status_code=resp.status_code,
                body=_excerpt(resp),
            )
        return [
            GatewaySchedule(id=str(item["id"]), payment_id=str(item.get("paymentId") or ""))
            for item in items
            if isinstance(item, dict) and item.get("id")
        ]

    def cancel_schedules(self, schedule_ids: list[str]) -> None:
        """Cancel pending schedules by their gateway-assigned ids."""
        self._request(
            "DELETE",
            "/payment-schedules",
            GatewayScheduleCancelError,
            "schedule cancellation",
            data={"scheduleIds": list(schedule_ids)},
        )

    def pay_with_billing_key(
        self,
        payment_id: str,
        *,
        billing_key: str,
        order_name: str,
        customer_id: str,
        amount: int,
        webhook_url: str | None = None,
    ) -> dict[str, Any]:
        """Charge a stored billing key immediately.

        The outcome is delivered to ``webhook_url`` as a Paid notification.
        """
        data: dict[str, Any] = {
            "billingKey": billing_key,
            "orderName": order_name,
            "customer": {"id": customer_id},
            "amount": {"total": int(amount)},
            "currency": self.currency,
        }
        if webhook_url:
            data["webhookUrl"] = webhook_url

        resp = self._request(
            "POST",
            f"/payments/{quote(payment_id, safe='')}/billing-key",
            GatewayPaymentError,
            "billing key payment",
            data=data,
        )
        if not resp.content:
            return {}
        return self._parse_json(resp, GatewayPaymentError, "billing key payment")


def get_portone_client() -> PortOneClient:
    """FastAPI dependency returning a client built from settings.

    Raises:
        ConfigurationError: If the API secret is not set.
    """
    return PortOneClient()
