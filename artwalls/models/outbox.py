"""Outbox message model.

Post-settlement side effects (mark artwork sold, deactivate the Stripe
listing) are written here in the same transaction that marks the order
paid, then delivered after commit. A failed delivery is recorded on the
row and never affects the settled order.
"""

import uuid

from artwalls.extensions import db


class OutboxMessage(db.Model):
    __tablename__ = "outbox_messages"

    STATUSES = ["pending", "delivering", "delivered", "failed"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    kind = db.Column(db.String(100), nullable=False)  # e.g. "artwork.sold"
    payload = db.Column(db.JSON, default=dict)
    status = db.Column(
        db.String(20), default="pending", nullable=False, index=True
    )
    attempts = db.Column(db.Integer, default=0, nullable=False)
    last_error = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<OutboxMessage {self.kind} ({self.status})>"
