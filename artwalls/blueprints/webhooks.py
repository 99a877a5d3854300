"""Webhooks blueprint: /api/stripe/webhook

Receives Stripe webhook events, either directly (signature verified here)
or through a trusted forwarder that has already verified them.
Raw body is required for signature verification.
"""

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from artwalls.services.stripe_service import verify_webhook_signature
from artwalls.services.webhook_service import handle_webhook_event

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api/stripe")


def _respond(result):
    status = 200 if result.ok else 500
    return jsonify(result.to_response()), status


@webhooks_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    """Receive and process Stripe webhook events.

    1. Get raw body (required for signature verification)
    2. Verify signature with STRIPE_WEBHOOK_SECRET
    3. Pass to handle_webhook_event (idempotent via processed_events)
    4. Return 200 to acknowledge, 500 so Stripe retries
    """
    payload = request.get_data(as_text=True)
    sig_header = request.headers.get("Stripe-Signature")

    if not sig_header:
        logger.warning("Webhook received without Stripe-Signature header")
        return jsonify({"error": "Missing signature"}), 400

    # --- Verify signature ---
    try:
        event = verify_webhook_signature(payload, sig_header)
    except Exception as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        return jsonify({"error": "Invalid signature"}), 400

    logger.info(f"Webhook event received: {event['type']} ({event['id']})")
    return _respond(handle_webhook_event(event))


@webhooks_bp.route("/webhook/forwarded", methods=["POST"])
def forwarded_webhook():
    """Receive an event already verified by an upstream forwarder.

    Body: {"event": {...}}. When FORWARDED_WEBHOOK_SECRET is set, the
    X-Forwarded-Webhook-Secret header must match it.
    """
    expected = current_app.config.get("FORWARDED_WEBHOOK_SECRET") or ""
    if expected:
        provided = request.headers.get("X-Forwarded-Webhook-Secret", "")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            logger.warning("Forwarded webhook rejected: bad forwarder secret")
            return jsonify({"error": "Unauthorized"}), 401

    body = request.get_json(silent=True) or {}
    event = body.get("event") if isinstance(body, dict) else None
    if not isinstance(event, dict) or not event.get("id") or not event.get("type"):
        return jsonify({"error": "Invalid forwarded event"}), 400

    logger.info(f"Forwarded event received: {event['type']} ({event['id']})")
    return _respond(handle_webhook_event(event, note="forwarded"))
