"""Tests for the subscription status and payment ledger endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from subledger.main import app
from tests.conftest import add_event


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def _active_window():
    now = datetime.now(UTC)
    return {
        "start_at": now - timedelta(days=1),
        "end_at": now + timedelta(days=29),
        "end_grace_at": now + timedelta(days=30),
    }


class TestRoot:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["app"] == "subledger"
        assert data["status"] == "running"


class TestSubscriptionStatus:
    def test_not_subscribed(self, client):
        response = client.get("/v1/subscriptions/status")

        assert response.status_code == 200
        assert response.json() == {"is_subscribed": False, "transaction_key": None}

    def test_subscribed(self, client, db_session):
        add_event(db_session, transaction_key="B", **_active_window())

        response = client.get("/v1/subscriptions/status")

        assert response.json() == {"is_subscribed": True, "transaction_key": "B"}

    def test_cancelled(self, client, db_session):
        add_event(
            db_session,
            transaction_key="A",
            created_at=datetime(2026, 1, 1, tzinfo=UTC),
            **_active_window(),
        )
        add_event(
            db_session,
            transaction_key="A",
            status="Cancel",
            amount=-9900,
            created_at=datetime(2026, 1, 2, tzinfo=UTC),
            **_active_window(),
        )

        response = client.get("/v1/subscriptions/status")

        assert response.json()["is_subscribed"] is False

    def test_filter_by_transaction_key(self, client, db_session):
        add_event(db_session, transaction_key="B", **_active_window())

        assert client.get("/v1/subscriptions/status", params={"transaction_key": "B"}).json()["is_subscribed"] is True
        assert client.get("/v1/subscriptions/status", params={"transaction_key": "Z"}).json()["is_subscribed"] is False


class TestPaymentEvents:
    def test_list_newest_first(self, client, db_session):
        add_event(db_session, transaction_key="A", created_at=datetime(2026, 1, 1, tzinfo=UTC))
        add_event(
            db_session,
            transaction_key="A",
            status="Cancel",
            amount=-9900,
            created_at=datetime(2026, 1, 2, tzinfo=UTC),
        )
        add_event(db_session, transaction_key="B", created_at=datetime(2026, 1, 3, tzinfo=UTC))

        response = client.get("/v1/payment_events/")

        assert response.status_code == 200
        data = response.json()
        assert [(e["transaction_key"], e["status"]) for e in data] == [
            ("B", "Paid"),
            ("A", "Cancel"),
            ("A", "Paid"),
        ]
        assert data[1]["amount"] == -9900

    def test_filters(self, client, db_session):
        add_event(db_session, transaction_key="A")
        add_event(db_session, transaction_key="A", status="Cancel", amount=-9900)
        add_event(db_session, transaction_key="B")

        by_key = client.get("/v1/payment_events/", params={"transaction_key": "A"}).json()
        by_status = client.get("/v1/payment_events/", params={"status": "Cancel"}).json()

        assert len(by_key) == 2
        assert [e["transaction_key"] for e in by_status] == ["A"]

    def test_limit(self, client, db_session):
        for i in range(3):
            add_event(db_session, transaction_key=f"T{i}")

        response = client.get("/v1/payment_events/", params={"limit": 2})

        assert len(response.json()) == 2

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 1001}, {"status": "Refunded"}])
    def test_invalid_params(self, client, params):
        response = client.get("/v1/payment_events/", params=params)

        assert response.status_code == 422
