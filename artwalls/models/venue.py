"""Venue model.

Venues host artworks and receive a commission on each sale.
default_venue_fee_bps applies unless the artwork carries its own rate.
"""

import uuid

from artwalls.extensions import db


class Venue(db.Model):
    __tablename__ = "venues"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    stripe_account_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_payouts_enabled = db.Column(db.Boolean, default=False)
    stripe_charges_enabled = db.Column(db.Boolean, default=False)

    default_venue_fee_bps = db.Column(db.Integer, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<Venue {self.name}>"
