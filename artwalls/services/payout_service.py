"""Payout service: settles a paid checkout into artist / venue transfers.

settle_order(session) runs for a payment-mode checkout.session.completed:

1. Find the order from session metadata; return at once if already paid.
2. Resolve the settled charge behind the session's PaymentIntent.
3. For each payee with a nonzero payout (artist, then venue), skip the
   leg if a transfer is already recorded, else create it and record it.
4. Mark the order paid and enqueue the artwork.sold side effect, in one
   commit.

Any exception aborts the handler so Stripe redelivers the event. A retry
only issues the legs that are still missing, and each leg carries an
idempotency key derived from (order id, role), so no leg is ever paid
twice.
"""

import logging

import stripe

from artwalls.errors import (
    MissingChargeError,
    OrderNotFound,
    PartialSettlementError,
    PayoutAccountMissing,
    SettlementFailed,
)
from artwalls.extensions import db
from artwalls.models.artist import Artist
from artwalls.models.order import ROLE_ARTIST, ROLE_VENUE
from artwalls.models.venue import Venue
from artwalls.services import order_service, outbox_service, stripe_service

logger = logging.getLogger(__name__)


def _payee_account(order, role):
    """Return (recipient_id, stripe_account_id) for a payee role."""
    if role == ROLE_ARTIST:
        payee = db.session.get(Artist, order.artist_id)
        recipient_id = order.artist_id
    elif role == ROLE_VENUE:
        payee = db.session.get(Venue, order.venue_id) if order.venue_id else None
        recipient_id = order.venue_id
    else:
        raise ValueError(f"Unknown recipient role: {role}")

    account_id = payee.stripe_account_id if payee else None
    if not account_id:
        # De-provisioned between checkout and settlement.
        raise PayoutAccountMissing(
            f"Order {order.id}: {role} {recipient_id} has no Stripe account for payout"
        )
    return recipient_id, account_id


def issue_transfers(order, charge_id):
    """Issue every missing payout leg for the order, in role order.

    Returns the list of TransferRecords on the order afterwards.
    """
    for role in order.expected_payees():
        if order.transfer_for(role):
            logger.info(f"Order {order.id}: {role} transfer already recorded, skipping")
            continue

        recipient_id, account_id = _payee_account(order, role)
        amount = order.payout_for(role)
        try:
            transfer = stripe_service.create_transfer(
                order,
                role,
                destination=account_id,
                amount_cents=amount,
                charge_id=charge_id,
                recipient_id=recipient_id,
            )
        except stripe.StripeError as e:
            completed = [r for r in order.expected_payees() if order.transfer_for(r)]
            if completed:
                logger.error(
                    f"Order {order.id}: partial settlement, {role} transfer failed "
                    f"after {completed} succeeded: {e}"
                )
                raise PartialSettlementError(order.id, completed, role) from e
            raise

        order_service.record_transfer(order, role, account_id, amount, transfer.id)

    return list(order.transfers)


def settle_order(session):
    """Settle the order behind a completed payment-mode checkout session.

    Returns the order (paid). Raises SettlementFailed subclasses or Stripe
    errors on anything that should make the provider retry.
    """
    metadata = session.get("metadata") or {}
    order_id = metadata.get("orderId")
    artwork_id = metadata.get("artworkId")
    if not order_id:
        raise SettlementFailed("Missing orderId in session metadata")

    order = order_service.get_order(order_id)
    if not order:
        raise OrderNotFound(f"Order not found: {order_id}")

    # Guard independent of the event ledger: covers a ledger insert that
    # failed after an earlier successful settlement.
    if order.is_paid:
        logger.info(f"Order {order.id} already paid, skipping settlement")
        return order

    payment_intent_id = session.get("payment_intent")
    if not payment_intent_id:
        raise MissingChargeError(f"Order {order.id}: completed session has no payment_intent")

    charge_id = stripe_service.retrieve_charge_id(payment_intent_id)
    if not charge_id:
        raise MissingChargeError(f"Order {order.id}: no latest_charge on {payment_intent_id}")

    issue_transfers(order, charge_id)

    won = order_service.mark_paid(order, payment_intent_id, charge_id)
    if not won:
        db.session.rollback()
        logger.info(f"Order {order.id} was settled concurrently, nothing left to do")
        return order_service.get_order(order.id)

    order_service.log_audit("order.paid", order_id=order.id, artist_id=order.artist_id, metadata={
        "stripe_payment_intent_id": payment_intent_id,
        "stripe_charge_id": charge_id,
        "transfers": order.transfer_ids,
    })
    outbox_service.enqueue(outbox_service.ARTWORK_SOLD, {
        "artwork_id": artwork_id or order.artwork_id,
        "order_id": order.id,
    })
    db.session.commit()

    logger.info(f"Order {order.id} paid, transfers: {order.transfer_ids}")
    return order
