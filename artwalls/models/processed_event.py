"""Processed event model (idempotency ledger).

Every webhook event that finished processing is recorded by its Stripe
event ID. The event ID is the primary key, so the database itself rejects
a second insert for the same event, even from a concurrent worker.
Rows are never updated or deleted.
"""

from artwalls.extensions import db


class ProcessedEvent(db.Model):
    __tablename__ = "processed_events"

    stripe_event_id = db.Column(
        db.String(255), primary_key=True
    )  # e.g. "evt_1Abc..."
    event_type = db.Column(
        db.String(255), nullable=False
    )  # e.g. "checkout.session.completed"
    note = db.Column(db.String(500), nullable=True)
    processed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<ProcessedEvent {self.stripe_event_id} ({self.event_type})>"
