"""Artwork model.

Only the fields checkout and settlement touch: price, currency, the
optional venue fee override, the Stripe listing ids, and the sold flag.
"""

import uuid

from artwalls.extensions import db


class Artwork(db.Model):
    __tablename__ = "artworks"

    STATUSES = ["available", "sold"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title = db.Column(db.String(255), nullable=False)
    artist_id = db.Column(
        db.String(36), db.ForeignKey("artists.id"), nullable=False
    )
    venue_id = db.Column(
        db.String(36), db.ForeignKey("venues.id"), nullable=True
    )
    price_cents = db.Column(db.Integer, nullable=True)
    currency = db.Column(db.String(3), default="usd", nullable=False)
    venue_fee_bps = db.Column(db.Integer, nullable=True)  # overrides venue default

    # Sale listing at Stripe (deactivated once sold)
    stripe_product_id = db.Column(db.String(255), nullable=True)
    stripe_price_id = db.Column(db.String(255), nullable=True)

    status = db.Column(
        db.String(50), default="available", nullable=False
    )  # available | sold

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    artist = db.relationship("Artist")
    venue = db.relationship("Venue")

    @property
    def is_sold(self):
        return self.status == "sold"

    def __repr__(self):
        return f"<Artwork {self.title} ({self.status})>"
