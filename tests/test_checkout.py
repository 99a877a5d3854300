"""Tests for the checkout blueprint and checkout service.

Covers:
- Happy path: order created with its split, session created with metadata
- Artwork not found / already sold
- Artist and venue payout readiness
- Fee configuration errors (no order written)
- Stripe session failure (order left in 'created', 502)
- Artwork without a venue (no venue leg)
- Order status endpoint
- Session id only attached while the order is created
"""

from unittest.mock import MagicMock, patch

import stripe

from artwalls.extensions import db
from artwalls.models.artwork import Artwork
from artwalls.models.audit import AuditEvent
from artwalls.models.order import Order
from artwalls.services import order_service

READY = {"payouts_enabled": True, "charges_enabled": True}
NOT_READY = {"payouts_enabled": False, "charges_enabled": True}


def _post_checkout(client, artwork_id, **extra):
    body = {"artworkId": artwork_id}
    body.update(extra)
    return client.post("/api/stripe/create-checkout-session", json=body)


class TestCheckoutHappyPath:
    """Tests for a successful checkout start."""

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_creates_order_and_session(self, mock_account, mock_session, client, seed_data):
        """Valid artwork -> order with 1000/2000/7000 split + checkout URL."""
        mock_account.return_value = READY
        mock_session.return_value = MagicMock(
            id="cs_test_abc", url="https://checkout.stripe.com/c/pay/cs_test_abc"
        )

        resp = _post_checkout(client, seed_data["artwork_id"], buyerEmail="Buyer@Example.com")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["url"] == "https://checkout.stripe.com/c/pay/cs_test_abc"
        assert data["split"]["venue_payout_cents"] == 1000
        assert data["split"]["platform_fee_cents"] == 2000
        assert data["split"]["artist_payout_cents"] == 7000

        order = db.session.get(Order, data["orderId"])
        assert order.status == "created"
        assert order.amount_cents == 10000
        assert order.platform_fee_bps == 2000
        assert order.venue_fee_bps == 1000
        assert order.stripe_checkout_session_id == "cs_test_abc"
        assert order.buyer_email == "buyer@example.com"

        audit = AuditEvent.query.filter_by(action="order.created").first()
        assert audit is not None
        assert audit.order_id == order.id

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_session_carries_order_metadata(self, mock_account, mock_session, client, seed_data):
        """Session + PaymentIntent metadata carry the order id; key is per order."""
        mock_account.return_value = READY
        mock_session.return_value = MagicMock(id="cs_test_meta", url="https://x")

        resp = _post_checkout(client, seed_data["artwork_id"])
        order_id = resp.get_json()["orderId"]

        kwargs = mock_session.call_args.kwargs
        assert kwargs["mode"] == "payment"
        assert kwargs["metadata"]["orderId"] == order_id
        assert kwargs["metadata"]["artworkId"] == seed_data["artwork_id"]
        assert kwargs["payment_intent_data"]["transfer_group"] == order_id
        assert kwargs["payment_intent_data"]["metadata"]["orderId"] == order_id
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 10000
        assert kwargs["idempotency_key"] == f"checkout-{order_id}"
        assert seed_data["artwork_id"] in kwargs["success_url"]

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_paid_tier_lowers_platform_fee(self, mock_account, mock_session, client, seed_data):
        """Artist on an active growth subscription -> 200 bps platform fee."""
        from artwalls.models.artist import Artist

        artist = db.session.get(Artist, seed_data["artist_id"])
        artist.subscription_tier = "growth"
        db.session.commit()

        mock_account.return_value = READY
        mock_session.return_value = MagicMock(id="cs_test_growth", url="https://x")

        resp = _post_checkout(client, seed_data["artwork_id"])
        split = resp.get_json()["split"]
        assert split["platform_fee_bps"] == 200
        assert split["platform_fee_cents"] == 200
        assert split["artist_payout_cents"] == 8800

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_artwork_without_venue(self, mock_account, mock_session, client, seed_data):
        """No venue -> venue leg is zero and only the artist account is checked."""
        artwork = db.session.get(Artwork, seed_data["artwork_id"])
        artwork.venue_id = None
        db.session.commit()

        mock_account.return_value = READY
        mock_session.return_value = MagicMock(id="cs_test_novenue", url="https://x")

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 200
        split = resp.get_json()["split"]
        assert split["venue_payout_cents"] == 0
        assert split["artist_payout_cents"] == 8000
        mock_account.assert_called_once_with("acct_artist_123")


class TestCheckoutPreconditions:
    """Tests for refusals before any order is written."""

    def test_missing_artwork_id_returns_400(self, client, seed_data):
        resp = client.post("/api/stripe/create-checkout-session", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid artworkId"

    def test_unknown_artwork_returns_404(self, client, seed_data):
        resp = _post_checkout(client, "no-such-artwork")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Artwork not found"
        assert Order.query.count() == 0

    def test_sold_artwork_returns_410(self, client, seed_data):
        artwork = db.session.get(Artwork, seed_data["artwork_id"])
        artwork.status = "sold"
        db.session.commit()

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 410
        assert resp.get_json()["error"] == "Artwork is no longer available"
        assert Order.query.count() == 0

    def test_missing_price_returns_400(self, client, seed_data):
        artwork = db.session.get(Artwork, seed_data["artwork_id"])
        artwork.price_cents = None
        db.session.commit()

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 400
        assert Order.query.count() == 0

    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_artist_not_payout_ready_returns_409(self, mock_account, client, seed_data):
        mock_account.return_value = NOT_READY

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Artist payouts not set up yet"
        assert Order.query.count() == 0

    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_venue_not_payout_ready_returns_409(self, mock_account, client, seed_data):
        mock_account.side_effect = lambda account_id: (
            READY if account_id == "acct_artist_123" else NOT_READY
        )

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Venue payouts not set up yet"
        assert Order.query.count() == 0

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_fee_rates_too_high_returns_500(self, mock_account, mock_session, client, seed_data):
        """Venue 90% + platform 20% -> configuration error, nothing written."""
        artwork = db.session.get(Artwork, seed_data["artwork_id"])
        artwork.venue_fee_bps = 9000
        db.session.commit()
        mock_account.return_value = READY

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 500
        assert "too high" in resp.get_json()["error"]
        assert Order.query.count() == 0
        mock_session.assert_not_called()


class TestCheckoutProviderFailure:
    """Tests for a Stripe failure while creating the session."""

    @patch("artwalls.services.stripe_service.stripe.checkout.Session.create")
    @patch("artwalls.services.stripe_service.stripe.Account.retrieve")
    def test_session_failure_leaves_order_created(self, mock_account, mock_session, client, seed_data):
        mock_account.return_value = READY
        mock_session.side_effect = stripe.APIConnectionError("network down")

        resp = _post_checkout(client, seed_data["artwork_id"])
        assert resp.status_code == 502
        assert resp.get_json()["error"] == "Checkout session failed. Please try again."

        orders = Order.query.all()
        assert len(orders) == 1
        assert orders[0].status == "created"
        assert orders[0].stripe_checkout_session_id is None

        # Artwork stays on sale
        artwork = db.session.get(Artwork, seed_data["artwork_id"])
        assert artwork.status == "available"


class TestOrderStatus:
    """Tests for GET /api/orders/<id>."""

    def test_returns_order(self, client, make_order):
        order_id = make_order()
        resp = client.get(f"/api/orders/{order_id}")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["id"] == order_id
        assert data["status"] == "created"
        assert data["artistPayoutCents"] == 7000
        assert data["payoutState"] == "none"
        assert data["transfers"] == []

    def test_unknown_order_returns_404(self, client, seed_data):
        resp = client.get("/api/orders/nope")
        assert resp.status_code == 404


class TestAttachCheckoutSession:
    """Tests for order_service.attach_checkout_session."""

    def test_attaches_to_created_order(self, app, make_order):
        order_id = make_order()
        order = db.session.get(Order, order_id)

        assert order_service.attach_checkout_session(order, "cs_test_new") is True
        assert db.session.get(Order, order_id).stripe_checkout_session_id == "cs_test_new"

    def test_paid_order_keeps_its_session(self, app, make_order):
        """A late attach must not overwrite a settled order's session id."""
        order_id = make_order()
        order = db.session.get(Order, order_id)
        order.stripe_checkout_session_id = "cs_test_original"
        db.session.commit()

        db.session.execute(
            db.update(Order).where(Order.id == order_id).values(status="paid")
        )
        db.session.commit()

        assert order_service.attach_checkout_session(order, "cs_test_late") is False

        order = db.session.get(Order, order_id)
        assert order.status == "paid"
        assert order.stripe_checkout_session_id == "cs_test_original"
