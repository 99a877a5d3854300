"""Outbox service: post-settlement side effects.

Messages are enqueued inside the settlement transaction and delivered
after it commits. Delivery is best-effort: a failure is logged and kept
on the message row, and never reaches the webhook response or the order.
"""

import logging
from datetime import datetime, timezone

from artwalls.extensions import db
from artwalls.models.artwork import Artwork
from artwalls.models.outbox import OutboxMessage
from artwalls.services import stripe_service

logger = logging.getLogger(__name__)

ARTWORK_SOLD = "artwork.sold"


def enqueue(kind, payload):
    """Add a message to the current session. Caller commits."""
    message = OutboxMessage(kind=kind, payload=payload or {}, status="pending")
    db.session.add(message)
    return message


# ──────────────────────────────────────────────
# Handlers
# ──────────────────────────────────────────────

def _handle_artwork_sold(payload):
    """Mark the artwork sold and retire its Stripe listing."""
    artwork = db.session.get(Artwork, payload.get("artwork_id"))
    if not artwork:
        logger.warning(f"artwork.sold: artwork {payload.get('artwork_id')} not found")
        return

    if artwork.status != "sold":
        artwork.status = "sold"
        db.session.commit()
        logger.info(f"Artwork {artwork.id} marked sold (order {payload.get('order_id')})")

    if artwork.stripe_price_id or artwork.stripe_product_id:
        stripe_service.deactivate_listing(
            price_id=artwork.stripe_price_id,
            product_id=artwork.stripe_product_id,
        )


_HANDLERS = {
    ARTWORK_SOLD: _handle_artwork_sold,
}


# ──────────────────────────────────────────────
# Delivery
# ──────────────────────────────────────────────

def _claim(message_id, statuses):
    """Move a message to 'delivering' if it is still in one of statuses.

    One conditional UPDATE, committed at once, so two workers that listed
    the same message never both run its handler.
    """
    claimed = (
        OutboxMessage.query
        .filter(OutboxMessage.id == message_id, OutboxMessage.status.in_(statuses))
        .update(
            {"status": "delivering", "attempts": OutboxMessage.attempts + 1},
            synchronize_session=False,
        )
    )
    db.session.commit()
    return bool(claimed)


def deliver(message, claimable=("pending",)):
    """Claim one message and run its handler.

    Returns True on success, False on failure, None if another worker
    claimed the message first.
    """
    message_id = message.id
    if not _claim(message_id, claimable):
        logger.info(f"Outbox message {message_id} already claimed, skipping")
        return None

    message = db.session.get(OutboxMessage, message_id)
    handler = _HANDLERS.get(message.kind)
    if handler is None:
        message.status = "failed"
        message.last_error = f"No handler for {message.kind}"
        db.session.commit()
        logger.error(f"Outbox message {message_id}: no handler for {message.kind}")
        return False

    try:
        handler(message.payload or {})
    except Exception as e:
        db.session.rollback()
        message = db.session.get(OutboxMessage, message_id)
        message.status = "failed"
        message.last_error = str(e)[:2000]
        db.session.commit()
        logger.warning(f"Outbox message {message.id} ({message.kind}) failed: {e}")
        return False

    message.status = "delivered"
    message.last_error = None
    message.delivered_at = datetime.now(timezone.utc)
    db.session.commit()
    return True


def deliver_pending(limit=50, include_failed=False):
    """Deliver queued messages, oldest first.

    Messages claimed by another worker in the meantime are skipped.
    Returns (delivered_count, failed_count).
    """
    statuses = ("pending", "failed") if include_failed else ("pending",)
    messages = (
        OutboxMessage.query
        .filter(OutboxMessage.status.in_(statuses))
        .order_by(OutboxMessage.created_at)
        .limit(limit)
        .all()
    )
    delivered = failed = 0
    for message in messages:
        result = deliver(message, claimable=statuses)
        if result is None:
            continue
        if result:
            delivered += 1
        else:
            failed += 1
    return delivered, failed
