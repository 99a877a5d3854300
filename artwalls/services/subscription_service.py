"""Subscription service: keeps artist tiers in step with Stripe Billing.

Responsible for:
- Pulling a subscription's current price + status from Stripe
- Mapping the price to an internal tier (price metadata, else fallback)
- Overwriting the artist's tier / status / fee override with that truth
- Recording Connect account capability changes (account.updated)

Nothing here moves money. Every sync overwrites from Stripe's current
state; local values are never merged in.
"""

import logging

from artwalls.extensions import db
from artwalls.models.artist import Artist
from artwalls.models.venue import Venue
from artwalls.services import stripe_service
from artwalls.services.order_service import log_audit
from artwalls.services.rate_card import (
    FREE_TIER,
    fee_override_from_price,
    tier_from_price,
)

logger = logging.getLogger(__name__)


def _first_item_price(subscription):
    """Single-plan subscriptions: the first item's price, or None."""
    items = subscription.get("items") or {}
    data = items.get("data") or []
    if not data:
        return None
    return data[0].get("price")


def get_or_create_artist(artist_id):
    artist = db.session.get(Artist, artist_id)
    if artist is None:
        artist = Artist(id=artist_id)
        db.session.add(artist)
        db.session.flush()
    return artist


def sync_subscription(artist_id, subscription_id, fallback_tier=None, deleted=False):
    """Overwrite the artist's subscription fields from Stripe.

    Any status other than active lands on the free tier with no fee
    override. A deleted subscription is recorded as canceled.

    Returns the Artist. Flushes only; the dispatcher commits.
    """
    subscription = stripe_service.retrieve_subscription(subscription_id)
    price = _first_item_price(subscription)

    status = "canceled" if deleted else (subscription.get("status") or "inactive")
    if status == "active":
        tier = tier_from_price(price, fallback_tier)
        fee_override = fee_override_from_price(price)
    else:
        tier = FREE_TIER
        fee_override = None

    artist = get_or_create_artist(artist_id)
    artist.stripe_subscription_id = subscription_id
    artist.subscription_tier = tier
    artist.subscription_status = status
    artist.platform_fee_bps = fee_override
    db.session.flush()

    log_audit("subscription.synced", artist_id=artist.id, metadata={
        "stripe_subscription_id": subscription_id,
        "tier": tier,
        "status": status,
        "platform_fee_bps": fee_override,
    })
    logger.info(f"Artist {artist.id} subscription synced: tier={tier} status={status}")
    return artist


def handle_subscription_checkout(session):
    """checkout.session.completed in subscription mode."""
    metadata = session.get("metadata") or {}
    artist_id = metadata.get("artistId")
    subscription_id = session.get("subscription")
    customer_id = session.get("customer")

    if not artist_id or not isinstance(subscription_id, str) or not subscription_id:
        logger.warning("Subscription checkout missing artistId or subscription id")
        return None

    artist = get_or_create_artist(artist_id)
    if isinstance(customer_id, str) and customer_id:
        artist.stripe_customer_id = customer_id

    return sync_subscription(artist_id, subscription_id, fallback_tier=metadata.get("tier"))


def handle_subscription_changed(subscription, deleted=False):
    """customer.subscription.updated / customer.subscription.deleted."""
    subscription_id = subscription.get("id")
    metadata = subscription.get("metadata") or {}
    artist_id = metadata.get("artistId")

    if not artist_id and subscription_id:
        linked = Artist.query.filter_by(stripe_subscription_id=subscription_id).first()
        artist_id = linked.id if linked else None

    if not artist_id or not subscription_id:
        logger.warning(f"Subscription change: cannot find artist for sub={subscription_id}")
        return None

    return sync_subscription(
        artist_id, subscription_id, fallback_tier=metadata.get("tier"), deleted=deleted
    )


def handle_account_updated(account):
    """account.updated: mirror Connect capabilities onto artists / venues."""
    account_id = account.get("id")
    if not account_id:
        return 0

    payouts_enabled = bool(account.get("payouts_enabled"))
    charges_enabled = bool(account.get("charges_enabled"))

    updated = 0
    for model in (Artist, Venue):
        for row in model.query.filter_by(stripe_account_id=account_id).all():
            row.stripe_payouts_enabled = payouts_enabled
            row.stripe_charges_enabled = charges_enabled
            updated += 1
    db.session.flush()

    logger.info(f"Connect account {account_id} updated ({updated} profile(s))")
    return updated
