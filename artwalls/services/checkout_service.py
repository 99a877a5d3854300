"""Checkout service: starts a buyer's hosted checkout for one artwork.

start_checkout(artwork_id, buyer_email) checks preconditions, computes
the fee split, creates the order, THEN creates the Stripe session. If
the session call fails, the order stays behind in 'created' with no
Stripe artifact pointing at it. No money moves here.
"""

import logging
from dataclasses import dataclass

from flask import current_app

from artwalls.errors import (
    ArtworkNotFound,
    ArtworkUnavailable,
    MissingPriceError,
    PayoutsNotReady,
)
from artwalls.extensions import db
from artwalls.models.artwork import Artwork
from artwalls.models.order import ROLE_ARTIST, ROLE_VENUE
from artwalls.services import fee_policy, order_service, stripe_service
from artwalls.services.rate_card import (
    RateCard,
    platform_fee_bps_for_artist,
    venue_fee_bps_for_artwork,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    checkout_url: str
    order_id: str
    split: fee_policy.FeeSplit


def _require_payout_ready(role, profile):
    account_id = profile.stripe_account_id if profile else None
    if not account_id or not stripe_service.is_account_payout_ready(account_id):
        raise PayoutsNotReady(role)


def preview_split(artwork, rate_card=None):
    """Fee split this artwork would settle with right now.

    Raises FeeConfigurationError if the rates leave a negative artist payout.
    """
    if rate_card is None:
        rate_card = RateCard.from_config(current_app.config)
    platform_bps = platform_fee_bps_for_artist(artwork.artist, rate_card)
    venue_bps = venue_fee_bps_for_artwork(artwork, artwork.venue, rate_card)
    return fee_policy.split(artwork.price_cents, venue_bps, platform_bps)


def start_checkout(artwork_id, buyer_email=None):
    """Create a pending order and a hosted checkout session for it.

    Returns a CheckoutResult.
    Raises CheckoutPreconditionError / ConfigurationError subclasses before
    anything is written, and stripe.StripeError if session creation fails.
    """
    artwork = db.session.get(Artwork, artwork_id) if artwork_id else None
    if artwork is None:
        raise ArtworkNotFound()
    if artwork.is_sold:
        raise ArtworkUnavailable()
    if not isinstance(artwork.price_cents, int) or artwork.price_cents <= 0:
        raise MissingPriceError()

    # Precondition: both payees can receive transfers.
    _require_payout_ready(ROLE_ARTIST, artwork.artist)
    if artwork.venue_id:
        _require_payout_ready(ROLE_VENUE, artwork.venue)

    # Fails fast (FeeConfigurationError) before any order or session exists.
    split = preview_split(artwork)

    order = order_service.create_order(artwork, split, buyer_email=buyer_email)

    try:
        session = stripe_service.create_checkout_session(order, artwork)
    except Exception:
        logger.error(f"Checkout session creation failed for order {order.id}; order left in 'created'", exc_info=True)
        raise

    order_service.attach_checkout_session(order, session.id)
    logger.info(f"Checkout session {session.id} created for order {order.id}")

    return CheckoutResult(checkout_url=session.url, order_id=order.id, split=split)
