"""Audit event model.

Logs every money-relevant action (order created, transfer issued, order
paid, subscription synced) for operator review and debugging.
"""

import uuid

from artwalls.extensions import db


class AuditEvent(db.Model):
    __tablename__ = "audit_events"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id"), nullable=True
    )
    artist_id = db.Column(
        db.String(36), db.ForeignKey("artists.id"), nullable=True
    )
    action = db.Column(db.String(255), nullable=False)  # e.g. "order.paid"
    metadata_ = db.Column(
        "metadata", db.JSON, default=dict
    )  # extra context, named metadata_ to avoid SQLAlchemy's reserved attribute
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<AuditEvent {self.action}>"
