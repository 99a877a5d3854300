"""Webhook service: the settlement dispatcher.

Responsible for:
- Classifying Stripe events into a closed set of kinds
- Idempotency via the processed_events ledger
- Dispatching each kind to exactly one handler
- Committing the handler's work BEFORE recording the event
- Delivering post-settlement outbox messages after the ledger insert

Per event:
    seen in ledger     -> duplicate, no side effects
    handler raises     -> rollback, ledger untouched, caller returns 500
    handler succeeds   -> commit, record event id, deliver outbox
"""

import enum
import logging
from dataclasses import dataclass

from artwalls.extensions import db
from artwalls.services import (
    ledger_service,
    outbox_service,
    payout_service,
    subscription_service,
)

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    PAYMENT_CHECKOUT_COMPLETED = "payment_checkout_completed"
    SUBSCRIPTION_CHECKOUT_COMPLETED = "subscription_checkout_completed"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    ACCOUNT_UPDATED = "account_updated"
    UNHANDLED = "unhandled"


@dataclass
class WebhookResult:
    ok: bool
    duplicate: bool = False
    message: str = ""

    def to_response(self):
        if not self.ok:
            return {"error": self.message or "Webhook handler failed"}
        body = {"received": True}
        if self.duplicate:
            body["duplicate"] = True
        return body


def _event_object(event):
    return (event.get("data") or {}).get("object") or {}


def classify_event(event):
    """Map a Stripe event to an EventKind. The only place type strings live."""
    event_type = event.get("type")
    obj = _event_object(event)

    if event_type == "checkout.session.completed":
        mode = obj.get("mode")
        if mode == "payment":
            return EventKind.PAYMENT_CHECKOUT_COMPLETED
        if mode == "subscription":
            return EventKind.SUBSCRIPTION_CHECKOUT_COMPLETED
        return EventKind.UNHANDLED
    if event_type == "customer.subscription.updated":
        return EventKind.SUBSCRIPTION_UPDATED
    if event_type == "customer.subscription.deleted":
        return EventKind.SUBSCRIPTION_DELETED
    if event_type == "account.updated":
        return EventKind.ACCOUNT_UPDATED
    return EventKind.UNHANDLED


# ──────────────────────────────────────────────
# Event Handlers
# ──────────────────────────────────────────────

def _handle_payment_completed(event):
    payout_service.settle_order(_event_object(event))


def _handle_subscription_checkout(event):
    subscription_service.handle_subscription_checkout(_event_object(event))


def _handle_subscription_changed(event):
    subscription_service.handle_subscription_changed(_event_object(event))


def _handle_subscription_deleted(event):
    subscription_service.handle_subscription_changed(_event_object(event), deleted=True)


def _handle_account_updated(event):
    subscription_service.handle_account_updated(_event_object(event))


def _handle_unhandled(event):
    logger.info(f"Ignoring unhandled event {event.get('id')} ({event.get('type')})")


HANDLERS = {
    EventKind.PAYMENT_CHECKOUT_COMPLETED: _handle_payment_completed,
    EventKind.SUBSCRIPTION_CHECKOUT_COMPLETED: _handle_subscription_checkout,
    EventKind.SUBSCRIPTION_UPDATED: _handle_subscription_changed,
    EventKind.SUBSCRIPTION_DELETED: _handle_subscription_deleted,
    EventKind.ACCOUNT_UPDATED: _handle_account_updated,
    EventKind.UNHANDLED: _handle_unhandled,
}


# ──────────────────────────────────────────────
# Dispatch
# ──────────────────────────────────────────────

def handle_webhook_event(event, note=None):
    """Process a verified (or trusted, forwarded) Stripe event.

    Returns a WebhookResult.
    """
    event_id = event["id"]
    event_type = event["type"]

    # --- Idempotency check ---
    if ledger_service.was_processed(event_id):
        logger.info(f"Duplicate webhook event {event_id} ({event_type}), skipping")
        return WebhookResult(ok=True, duplicate=True, message="already_processed")

    # --- Route to handler ---
    kind = classify_event(event)
    handler = HANDLERS[kind]
    try:
        handler(event)
        db.session.commit()
    except Exception as e:
        logger.error(f"Error handling {event_type} ({event_id}): {e}", exc_info=True)
        db.session.rollback()
        return WebhookResult(ok=False, message=str(e))

    # --- Record event for idempotency (after the handler's work is durable) ---
    # If this fails the provider retries; handlers skip work already done.
    try:
        recorded = ledger_service.record_processed(event_id, event_type, note=note)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to record event {event_id}: {e}", exc_info=True)
        return WebhookResult(ok=False, message="Idempotency record failed")

    # --- Best-effort side effects ---
    try:
        outbox_service.deliver_pending()
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Outbox delivery after {event_id} failed: {e}")

    if not recorded:
        return WebhookResult(ok=True, duplicate=True, message="already_processed")
    return WebhookResult(ok=True, message="processed")
