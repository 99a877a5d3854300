"""Checkout blueprint: /api/stripe/create-checkout-session, /api/orders

Routes:
- POST /api/stripe/create-checkout-session: create order + Stripe session, return its URL
- GET  /api/orders/<order_id>: order status poll for the purchase page
"""

import logging

import stripe
from flask import Blueprint, current_app, jsonify, request

from artwalls.errors import ConfigurationError, SettlementError
from artwalls.extensions import limiter
from artwalls.services.checkout_service import start_checkout
from artwalls.services.order_service import get_order

logger = logging.getLogger(__name__)

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api")


# ──────────────────────────────────────────────
# POST /api/stripe/create-checkout-session
# ──────────────────────────────────────────────

@checkout_bp.route("/stripe/create-checkout-session", methods=["POST"])
@limiter.limit(lambda: current_app.config["CHECKOUT_RATE_LIMIT"])
def create_checkout_session():
    """Start a hosted checkout for one artwork.

    Body: {"artworkId": "...", "buyerEmail": "..."} (buyerEmail optional)
    Returns {"url", "orderId", "split"} or {"error": "..."}.
    """
    body = request.get_json(silent=True) or {}
    artwork_id = body.get("artworkId") if isinstance(body, dict) else None
    buyer_email = body.get("buyerEmail") if isinstance(body, dict) else None

    if not artwork_id or not isinstance(artwork_id, str):
        return jsonify({"error": "Invalid artworkId"}), 400
    if buyer_email is not None and not isinstance(buyer_email, str):
        return jsonify({"error": "Invalid buyerEmail"}), 400

    try:
        result = start_checkout(artwork_id, buyer_email=buyer_email or None)
    except ConfigurationError as e:
        logger.error(f"Checkout configuration error for artwork {artwork_id}: {e.message}")
        return jsonify({"error": e.message}), e.status_code
    except SettlementError as e:
        logger.info(f"Checkout refused for artwork {artwork_id}: {e.message}")
        return jsonify({"error": e.message}), e.status_code
    except stripe.StripeError as e:
        logger.error(f"Checkout session error for artwork {artwork_id}: {e}", exc_info=True)
        return jsonify({"error": "Checkout session failed. Please try again."}), 502

    return jsonify({
        "url": result.checkout_url,
        "orderId": result.order_id,
        "split": result.split.to_dict(),
    }), 200


# ──────────────────────────────────────────────
# GET /api/orders/<order_id>
# ──────────────────────────────────────────────

@checkout_bp.route("/orders/<order_id>")
def order_status(order_id):
    """JSON endpoint polled by the purchase page until the order is paid."""
    order = get_order(order_id)
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order.to_dict()), 200
