"""Tests for the webhooks blueprint and the settlement dispatcher.

Covers:
- Webhook signature verification (missing, invalid)
- Idempotent event processing (duplicate events skipped)
- Ledger written only after the handler's work commits
- Lost ledger race reported as a duplicate
- Unknown event types (accepted and recorded, no side effects)
- Forwarded path (shared secret, body validation, ledger note)
- Event classification
"""

from unittest.mock import MagicMock, patch

from artwalls.extensions import db
from artwalls.models.processed_event import ProcessedEvent
from artwalls.services import ledger_service
from artwalls.services.webhook_service import (
    HANDLERS,
    EventKind,
    classify_event,
    handle_webhook_event,
)


def _post_signed(client):
    return client.post(
        "/api/stripe/webhook",
        data="{}",
        content_type="application/json",
        headers={"Stripe-Signature": "valid_sig"},
    )


class TestWebhookSignature:
    """Tests for webhook signature validation."""

    def test_missing_signature_returns_400(self, client, seed_data):
        """POST /api/stripe/webhook without signature -> 400."""
        resp = client.post(
            "/api/stripe/webhook",
            data="{}",
            content_type="application/json",
        )
        assert resp.status_code == 400
        assert b"Missing signature" in resp.data

    @patch("artwalls.services.stripe_service.stripe.Webhook.construct_event")
    def test_invalid_signature_returns_400(self, mock_construct, client, seed_data):
        """POST /api/stripe/webhook with bad signature -> 400, nothing recorded."""
        mock_construct.side_effect = Exception("Invalid signature")

        resp = client.post(
            "/api/stripe/webhook",
            data="{}",
            content_type="application/json",
            headers={"Stripe-Signature": "bad_sig"},
        )
        assert resp.status_code == 400
        assert b"Invalid signature" in resp.data
        assert ProcessedEvent.query.count() == 0

    @patch("artwalls.services.stripe_service.stripe.Webhook.construct_event")
    def test_tolerance_passed_to_verification(self, mock_construct, client, app, seed_data):
        mock_construct.return_value = {"id": "evt_tol", "type": "ping", "data": {"object": {}}}

        _post_signed(client)

        assert mock_construct.call_args.kwargs["tolerance"] == app.config["STRIPE_WEBHOOK_TOLERANCE"]
        assert mock_construct.call_args.args[2] == "whsec_test_fake"


class TestWebhookIdempotency:
    """Tests for duplicate event handling."""

    @patch("artwalls.services.stripe_service.stripe.Webhook.construct_event")
    def test_duplicate_event_returns_200(self, mock_construct, client, seed_data):
        """Event id already in the ledger -> 200 with duplicate flag, no handler."""
        db.session.add(ProcessedEvent(
            stripe_event_id="evt_duplicate_123",
            event_type="checkout.session.completed",
        ))
        db.session.commit()

        mock_construct.return_value = {
            "id": "evt_duplicate_123",
            "type": "checkout.session.completed",
            "data": {"object": {"mode": "payment", "metadata": {"orderId": "x"}}},
        }

        with patch("artwalls.services.payout_service.settle_order") as mock_settle:
            resp = _post_signed(client)

        assert resp.status_code == 200
        assert resp.get_json() == {"received": True, "duplicate": True}
        mock_settle.assert_not_called()

    @patch("artwalls.services.stripe_service.stripe.Webhook.construct_event")
    def test_unknown_event_is_recorded(self, mock_construct, client, seed_data):
        """Unknown type -> 200 and recorded, so redelivery is a duplicate."""
        mock_construct.return_value = {
            "id": "evt_unknown_001",
            "type": "some.unknown.event",
            "data": {"object": {}},
        }

        resp = _post_signed(client)
        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}

        row = db.session.get(ProcessedEvent, "evt_unknown_001")
        assert row is not None
        assert row.event_type == "some.unknown.event"
        assert row.note is None

    @patch("artwalls.services.stripe_service.stripe.Webhook.construct_event")
    def test_handler_failure_returns_500_and_is_not_recorded(self, mock_construct, client, seed_data):
        """Handler raises -> 500 so Stripe retries; ledger untouched."""
        mock_construct.return_value = {
            "id": "evt_fail_001",
            "type": "some.unknown.event",
            "data": {"object": {}},
        }
        failing = MagicMock(side_effect=RuntimeError("database went away"))

        with patch.dict(HANDLERS, {EventKind.UNHANDLED: failing}):
            resp = _post_signed(client)

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "database went away"}
        assert db.session.get(ProcessedEvent, "evt_fail_001") is None

        # Redelivery after the fault clears is processed normally
        resp = _post_signed(client)
        assert resp.status_code == 200
        assert db.session.get(ProcessedEvent, "evt_fail_001") is not None

    @patch("artwalls.services.webhook_service.ledger_service.was_processed", return_value=False)
    def test_lost_ledger_race_reports_duplicate(self, mock_was_processed, app, seed_data):
        """Another worker recorded the event between our check and insert."""
        db.session.add(ProcessedEvent(stripe_event_id="evt_race_001", event_type="ping"))
        db.session.commit()

        result = handle_webhook_event({"id": "evt_race_001", "type": "ping", "data": {}})

        assert result.ok is True
        assert result.duplicate is True
        assert result.to_response() == {"received": True, "duplicate": True}
        assert ProcessedEvent.query.count() == 1

    @patch("artwalls.services.webhook_service.ledger_service.record_processed")
    def test_ledger_failure_returns_500(self, mock_record, app, seed_data):
        mock_record.side_effect = RuntimeError("disk full")

        result = handle_webhook_event({"id": "evt_ledger_001", "type": "ping", "data": {}})

        assert result.ok is False
        assert result.to_response() == {"error": "Idempotency record failed"}

    def test_record_processed_twice(self, app, seed_data):
        assert ledger_service.record_processed("evt_once", "ping") is True
        assert ledger_service.record_processed("evt_once", "ping") is False
        assert ledger_service.was_processed("evt_once") is True


class TestForwardedWebhook:
    """Tests for POST /api/stripe/webhook/forwarded."""

    def test_forwarded_event_processed_with_note(self, client, seed_data):
        resp = client.post(
            "/api/stripe/webhook/forwarded",
            json={"event": {"id": "evt_fwd_001", "type": "some.unknown.event", "data": {"object": {}}}},
        )
        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}
        assert db.session.get(ProcessedEvent, "evt_fwd_001").note == "forwarded"

    def test_forwarded_duplicate(self, client, seed_data):
        body = {"event": {"id": "evt_fwd_dup", "type": "some.unknown.event", "data": {"object": {}}}}
        client.post("/api/stripe/webhook/forwarded", json=body)
        resp = client.post("/api/stripe/webhook/forwarded", json=body)
        assert resp.status_code == 200
        assert resp.get_json() == {"received": True, "duplicate": True}

    def test_forwarded_invalid_body_returns_400(self, client, seed_data):
        resp = client.post("/api/stripe/webhook/forwarded", json={"event": {"type": "x"}})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid forwarded event"

        resp = client.post("/api/stripe/webhook/forwarded", data="not json")
        assert resp.status_code == 400

    def test_forwarded_secret_enforced(self, client, app, seed_data, monkeypatch):
        monkeypatch.setitem(app.config, "FORWARDED_WEBHOOK_SECRET", "fwd-secret")
        body = {"event": {"id": "evt_fwd_sec", "type": "some.unknown.event", "data": {"object": {}}}}

        resp = client.post("/api/stripe/webhook/forwarded", json=body)
        assert resp.status_code == 401

        resp = client.post(
            "/api/stripe/webhook/forwarded",
            json=body,
            headers={"X-Forwarded-Webhook-Secret": "wrong"},
        )
        assert resp.status_code == 401
        assert db.session.get(ProcessedEvent, "evt_fwd_sec") is None

        resp = client.post(
            "/api/stripe/webhook/forwarded",
            json=body,
            headers={"X-Forwarded-Webhook-Secret": "fwd-secret"},
        )
        assert resp.status_code == 200


class TestClassifyEvent:
    """Tests for event type -> EventKind mapping."""

    def _event(self, event_type, **obj):
        return {"id": "evt", "type": event_type, "data": {"object": obj}}

    def test_checkout_modes(self):
        assert classify_event(self._event("checkout.session.completed", mode="payment")) \
            == EventKind.PAYMENT_CHECKOUT_COMPLETED
        assert classify_event(self._event("checkout.session.completed", mode="subscription")) \
            == EventKind.SUBSCRIPTION_CHECKOUT_COMPLETED
        assert classify_event(self._event("checkout.session.completed", mode="setup")) \
            == EventKind.UNHANDLED

    def test_subscription_and_account_events(self):
        assert classify_event(self._event("customer.subscription.updated")) == EventKind.SUBSCRIPTION_UPDATED
        assert classify_event(self._event("customer.subscription.deleted")) == EventKind.SUBSCRIPTION_DELETED
        assert classify_event(self._event("account.updated")) == EventKind.ACCOUNT_UPDATED

    def test_everything_else_is_unhandled(self):
        assert classify_event(self._event("invoice.paid")) == EventKind.UNHANDLED
        assert classify_event({"id": "evt", "type": "ping"}) == EventKind.UNHANDLED

    def test_every_kind_has_a_handler(self):
        assert set(HANDLERS) == set(EventKind)
