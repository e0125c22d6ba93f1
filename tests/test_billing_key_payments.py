"""Tests for billing-key charge initiation."""

import re
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from subledger.core.config import settings
from subledger.core.exceptions import GatewayPaymentError
from subledger.main import app
from subledger.models.payment_event import PaymentEvent
from subledger.routers.payments import generate_payment_id
from subledger.services.payment_providers.portone import PortOneClient, get_portone_client

PAYMENT_URL = "/v1/payments/billing-key"

VALID_BODY = {
    "billingKey": "bk_123",
    "orderName": "Monthly plan",
    "amount": 9900,
    "customer": {"id": "cust_1"},
}


@pytest.fixture
def gateway():
    gw = MagicMock(spec=PortOneClient)
    gw.pay_with_billing_key.return_value = {"payment": {"pgTxId": "pg_1"}}
    return gw


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_portone_client] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestGeneratePaymentId:
    def test_format(self):
        assert re.fullmatch(r"payment_\d{13}_[0-9a-z]{7}", generate_payment_id())

    def test_unique(self):
        assert len({generate_payment_id() for _ in range(50)}) == 50


class TestBillingKeyPayment:
    def test_success(self, client, gateway, db_session):
        with patch.object(settings, "PUBLIC_BASE_URL", "https://shop.example/"):
            response = client.post(PAYMENT_URL, json=VALID_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert re.fullmatch(r"payment_\d+_[0-9a-z]{7}", data["paymentId"])
        gateway.pay_with_billing_key.assert_called_once_with(
            data["paymentId"],
            billing_key="bk_123",
            order_name="Monthly plan",
            customer_id="cust_1",
            amount=9900,
            webhook_url="https://shop.example/v1/portone/webhook",
        )
        assert db_session.query(PaymentEvent).count() == 0

    def test_gateway_rejection(self, client, gateway):
        gateway.pay_with_billing_key.side_effect = GatewayPaymentError(
            "PortOne billing key payment failed: 400",
            status_code=400,
            body='{"type":"BILLING_KEY_NOT_FOUND"}',
        )

        response = client.post(PAYMENT_URL, json=VALID_BODY)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Payment could not be processed",
            "details": '{"type":"BILLING_KEY_NOT_FOUND"}',
        }

    def test_transport_failure_is_bad_gateway(self, client, gateway):
        gateway.pay_with_billing_key.side_effect = GatewayPaymentError(
            "PortOne billing key payment failed: timed out"
        )

        response = client.post(PAYMENT_URL, json=VALID_BODY)

        assert response.status_code == 502
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "body",
        [
            {k: v for k, v in VALID_BODY.items() if k != "billingKey"},
            {k: v for k, v in VALID_BODY.items() if k != "customer"},
            {**VALID_BODY, "amount": 0},
            {**VALID_BODY, "amount": -100},
            {**VALID_BODY, "orderName": ""},
            {**VALID_BODY, "customer": {"id": ""}},
        ],
    )
    def test_invalid_input_rejected(self, client, gateway, body):
        response = client.post(PAYMENT_URL, json=body)

        assert response.status_code == 422
        gateway.pay_with_billing_key.assert_not_called()

    def test_missing_secret_returns_500(self):
        client = TestClient(app)

        with patch.object(settings, "PORTONE_API_SECRET", ""):
            response = client.post(PAYMENT_URL, json=VALID_BODY)

        assert response.status_code == 500
        assert response.json()["success"] is False
