"""Order service: the order store.

Responsible for:
- Creating orders with their fee split captured at checkout time
- Attaching the Stripe checkout session id
- Recording payout transfers as they succeed
- The single created -> paid transition (conditional update)
- Audit logging for order-related actions
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from artwalls.errors import SettlementFailed
from artwalls.extensions import db
from artwalls.models.audit import AuditEvent
from artwalls.models.order import (
    ORDER_CREATED,
    ORDER_PAID,
    Order,
    TransferRecord,
)

logger = logging.getLogger(__name__)


def log_audit(action, order_id=None, artist_id=None, metadata=None):
    """Add an audit event to the session. Caller controls the commit.

    Actor is implicit: these actions are system-initiated.
    """
    event = AuditEvent(
        order_id=order_id,
        artist_id=artist_id,
        action=action,
        metadata_=metadata or {},
    )
    db.session.add(event)
    return event


def create_order(artwork, fee_split, buyer_email=None):
    """Persist a new order in status 'created' and commit.

    The id is generated here, before any Stripe call is made.
    """
    order = Order(
        artwork_id=artwork.id,
        artist_id=artwork.artist_id,
        venue_id=artwork.venue_id,
        amount_cents=fee_split.amount_cents,
        currency=(artwork.currency or "usd").lower(),
        buyer_email=buyer_email.strip().lower() if buyer_email else None,
        platform_fee_bps=fee_split.platform_fee_bps,
        venue_fee_bps=fee_split.venue_fee_bps,
        platform_fee_cents=fee_split.platform_fee_cents,
        venue_payout_cents=fee_split.venue_payout_cents,
        artist_payout_cents=fee_split.artist_payout_cents,
        status=ORDER_CREATED,
    )
    db.session.add(order)
    db.session.flush()

    log_audit("order.created", order_id=order.id, artist_id=order.artist_id, metadata={
        "artwork_id": order.artwork_id,
        "amount_cents": order.amount_cents,
        "platform_fee_bps": order.platform_fee_bps,
        "venue_fee_bps": order.venue_fee_bps,
    })
    db.session.commit()
    logger.info(f"Order {order.id} created for artwork {order.artwork_id} ({order.amount_cents} {order.currency})")
    return order


def get_order(order_id):
    if not order_id:
        return None
    return db.session.get(Order, order_id)


def attach_checkout_session(order, session_id):
    """Store the Stripe checkout session id on the order and commit.

    Only a 'created' order accepts a session id. Returns False when the
    order has already moved on.
    """
    updated = (
        Order.query
        .filter_by(id=order.id, status=ORDER_CREATED)
        .update(
            {
                "stripe_checkout_session_id": session_id,
                "updated_at": datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )
    )
    db.session.commit()
    db.session.refresh(order)
    if not updated:
        logger.warning(f"Order {order.id} is {order.status}; checkout session {session_id} not attached")
    return bool(updated)


def record_transfer(order, role, account_id, amount_cents, transfer_id):
    """Append a transfer record and commit immediately.

    Committing per leg keeps partial completion durable: if the next leg
    fails and the webhook is retried, this leg is already on the order.
    """
    record = TransferRecord(
        order_id=order.id,
        recipient_role=role,
        recipient_account_id=account_id,
        amount_cents=amount_cents,
        stripe_transfer_id=transfer_id,
    )
    db.session.add(record)
    log_audit("transfer.created", order_id=order.id, artist_id=order.artist_id, metadata={
        "recipient": role,
        "amount_cents": amount_cents,
        "stripe_transfer_id": transfer_id,
    })
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent settlement recorded this leg first. The idempotency
        # key makes Stripe hand both workers the same transfer.
        db.session.rollback()
        existing = TransferRecord.query.filter_by(
            order_id=order.id, recipient_role=role
        ).first()
        if existing is None:
            raise
        if existing.stripe_transfer_id != transfer_id:
            message = (
                f"Order {order.id}: {role} transfer mismatch "
                f"(recorded {existing.stripe_transfer_id}, got {transfer_id})"
            )
            logger.error(message)
            raise SettlementFailed(message)
        db.session.refresh(order)
        return existing

    logger.info(f"Order {order.id}: {role} transfer {transfer_id} recorded ({amount_cents} {order.currency})")
    return record


def mark_paid(order, payment_intent_id, charge_id):
    """Transition created -> paid in one conditional UPDATE.

    Returns True if this caller made the transition, False if the order
    was no longer 'created' (another settlement got there first).
    Does not commit; the caller commits together with its outbox entry.
    """
    now = datetime.now(timezone.utc)
    updated = (
        Order.query
        .filter_by(id=order.id, status=ORDER_CREATED)
        .update(
            {
                "status": ORDER_PAID,
                "stripe_payment_intent_id": payment_intent_id,
                "stripe_charge_id": charge_id,
                "paid_at": now,
                "updated_at": now,
            },
            synchronize_session=False,
        )
    )
    if updated:
        db.session.refresh(order)
    return bool(updated)
