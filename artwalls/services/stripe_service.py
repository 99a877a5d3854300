"""Stripe service: every call this app makes to the Stripe API.

Responsible for:
- Webhook signature verification
- Connect account payout-readiness lookups
- Creating hosted Checkout Sessions for artwork purchases
- Resolving the settled charge behind a PaymentIntent
- Creating payout transfers (with deterministic idempotency keys)
- Retrieving subscriptions
- Deactivating a sold artwork's Price / Product

Every call is a single attempt with a bounded timeout. Stripe's own
webhook redelivery is the only retry mechanism.
"""

import logging

import stripe
from flask import current_app

logger = logging.getLogger(__name__)


def _configure():
    """Point the module-level Stripe client at this app's key and limits."""
    stripe.api_key = current_app.config["STRIPE_SECRET_KEY"]
    stripe.max_network_retries = 0
    timeout = current_app.config.get("STRIPE_API_TIMEOUT", 20)
    client = stripe.default_http_client
    if client is None or getattr(client, "_timeout", None) != timeout:
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)


def transfer_idempotency_key(order_id, role):
    """Deterministic key per (order, recipient role).

    Stripe returns the original transfer for a repeated key, so a retry
    after a lost local write can never pay the same leg twice.
    """
    return f"transfer-{order_id}-{role}"


def checkout_idempotency_key(order_id):
    return f"checkout-{order_id}"


# ──────────────────────────────────────────────
# Webhooks
# ──────────────────────────────────────────────

def verify_webhook_signature(payload, sig_header):
    """Verify Stripe webhook signature and construct the event.

    Returns the verified Stripe event object.
    Raises stripe.SignatureVerificationError on invalid signature.
    """
    webhook_secret = current_app.config["STRIPE_WEBHOOK_SECRET"]
    tolerance = current_app.config.get("STRIPE_WEBHOOK_TOLERANCE", 300)
    return stripe.Webhook.construct_event(
        payload, sig_header, webhook_secret, tolerance=tolerance
    )


# ──────────────────────────────────────────────
# Connect accounts
# ──────────────────────────────────────────────

def is_account_payout_ready(account_id):
    """True if the connected account can receive transfers right now."""
    if not account_id:
        return False
    _configure()
    account = stripe.Account.retrieve(account_id)
    return bool(account.get("payouts_enabled")) and bool(
        account.get("charges_enabled")
    )


# ──────────────────────────────────────────────
# Checkout
# ──────────────────────────────────────────────

def create_checkout_session(order, artwork):
    """Create a hosted Checkout Session for one artwork purchase.

    The session and its PaymentIntent both carry the order id so the
    completion webhook can find the order, and transfers can be grouped.

    Returns the Stripe session object.
    Raises stripe.StripeError on API failures.
    """
    _configure()
    base = current_app.config["APP_BASE_URL"].rstrip("/")
    success_url = current_app.config["CHECKOUT_SUCCESS_URL"].format(
        base=base, artwork_id=artwork.id
    )
    cancel_url = current_app.config["CHECKOUT_CANCEL_URL"].format(
        base=base, artwork_id=artwork.id
    )

    params = {
        "mode": "payment",
        "line_items": [
            {
                "price_data": {
                    "currency": order.currency,
                    "unit_amount": order.amount_cents,
                    "product_data": {"name": (artwork.title or "Artwork")[:200]},
                },
                "quantity": 1,
            }
        ],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": {
            "orderId": order.id,
            "artworkId": artwork.id,
        },
        "payment_intent_data": {
            "transfer_group": order.id,
            "metadata": {
                "orderId": order.id,
                "artworkId": artwork.id,
            },
        },
    }
    if order.buyer_email:
        params["customer_email"] = order.buyer_email

    return stripe.checkout.Session.create(
        idempotency_key=checkout_idempotency_key(order.id), **params
    )


# ──────────────────────────────────────────────
# Settlement
# ──────────────────────────────────────────────

def retrieve_charge_id(payment_intent_id):
    """Return the id of the settled charge behind a PaymentIntent, or None."""
    _configure()
    intent = stripe.PaymentIntent.retrieve(
        payment_intent_id, expand=["latest_charge"]
    )
    charge = intent.get("latest_charge")
    if isinstance(charge, str):
        return charge or None
    if charge:
        return charge.get("id")
    return None


def create_transfer(order, role, destination, amount_cents, charge_id, recipient_id):
    """Create one payout transfer sourced from the order's charge."""
    _configure()
    return stripe.Transfer.create(
        amount=amount_cents,
        currency=order.currency,
        destination=destination,
        source_transaction=charge_id,
        transfer_group=order.id,
        metadata={
            "orderId": order.id,
            "artworkId": order.artwork_id or "",
            "recipient": role,
            "recipientId": recipient_id or "",
        },
        idempotency_key=transfer_idempotency_key(order.id, role),
    )


# ──────────────────────────────────────────────
# Subscriptions
# ──────────────────────────────────────────────

def retrieve_subscription(subscription_id):
    """Retrieve a subscription with its item prices expanded."""
    _configure()
    return stripe.Subscription.retrieve(
        subscription_id, expand=["items.data.price"]
    )


# ──────────────────────────────────────────────
# Listings
# ──────────────────────────────────────────────

def deactivate_listing(price_id=None, product_id=None):
    """Turn off a sold artwork's Stripe Price and Product."""
    _configure()
    if price_id:
        stripe.Price.modify(price_id, active=False)
    if product_id:
        stripe.Product.modify(product_id, active=False)
