"""Shared test fixtures for the settlement engine test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: payout-ready artist + venue and an artwork hung at the venue
- make_order: helper that creates a 'created' order for the seeded artwork
- payment_event: builder for a payment-mode checkout.session.completed event
"""

import pytest

from artwalls import create_app
from artwalls.extensions import db as _db
from artwalls.models.artist import Artist
from artwalls.models.artwork import Artwork
from artwalls.models.order import Order
from artwalls.models.venue import Venue
from artwalls.services.fee_policy import split


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(app, db_session):
    """Seed an artist (free tier), a venue, and a $100.00 artwork.

    Returns plain ids so tests can use them across app contexts.
    """
    artist = Artist(
        name="Test Artist",
        email="artist@test.com",
        stripe_account_id="acct_artist_123",
        stripe_payouts_enabled=True,
        stripe_charges_enabled=True,
        subscription_tier="free",
        subscription_status="active",
    )
    venue = Venue(
        name="Test Cafe",
        email="venue@test.com",
        stripe_account_id="acct_venue_456",
        stripe_payouts_enabled=True,
        stripe_charges_enabled=True,
        default_venue_fee_bps=1000,
    )
    _db.session.add_all([artist, venue])
    _db.session.flush()

    artwork = Artwork(
        title="Harbor at Dusk",
        artist_id=artist.id,
        venue_id=venue.id,
        price_cents=10000,
        currency="usd",
        stripe_product_id="prod_art_1",
        stripe_price_id="price_art_1",
    )
    _db.session.add(artwork)
    _db.session.commit()

    return {
        "artist_id": artist.id,
        "venue_id": venue.id,
        "artwork_id": artwork.id,
    }


@pytest.fixture
def make_order(seed_data):
    """Create a 'created' order for the seeded artwork with the default split.

    10000 cents, venue 1000 bps, platform 2000 bps -> 1000 / 2000 / 7000.
    """

    def _make(venue_bps=1000, platform_bps=2000, amount_cents=10000, with_venue=True):
        fee_split = split(amount_cents, venue_bps, platform_bps)
        order = Order(
            artwork_id=seed_data["artwork_id"],
            artist_id=seed_data["artist_id"],
            venue_id=seed_data["venue_id"] if with_venue else None,
            amount_cents=amount_cents,
            currency="usd",
            platform_fee_bps=platform_bps,
            venue_fee_bps=venue_bps,
            platform_fee_cents=fee_split.platform_fee_cents,
            venue_payout_cents=fee_split.venue_payout_cents,
            artist_payout_cents=fee_split.artist_payout_cents,
            status="created",
            stripe_checkout_session_id=None,
        )
        _db.session.add(order)
        _db.session.commit()
        return order.id

    return _make


@pytest.fixture
def payment_event():
    """Builder for a checkout.session.completed event in payment mode."""

    def _build(order_id, artwork_id, event_id="evt_pay_001", payment_intent="pi_123"):
        return {
            "id": event_id,
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_test_123",
                    "mode": "payment",
                    "payment_intent": payment_intent,
                    "metadata": {"orderId": order_id, "artworkId": artwork_id},
                }
            },
        }

    return _build
