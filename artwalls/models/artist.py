"""Artist model.

Read-only reference for settlement: the connected Stripe account that
receives artist payouts, plus the subscription fields kept in sync from
Stripe (tier, status, optional per-artist platform fee override).
"""

import uuid

from artwalls.extensions import db


class Artist(db.Model):
    __tablename__ = "artists"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # --- Stripe Connect (payouts) ---
    stripe_account_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_payouts_enabled = db.Column(db.Boolean, default=False)
    stripe_charges_enabled = db.Column(db.Boolean, default=False)

    # --- Stripe Billing (subscription) ---
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True, index=True)
    subscription_tier = db.Column(
        db.String(50), default="free", nullable=False
    )  # free | starter | growth | pro
    subscription_status = db.Column(
        db.String(50), nullable=True
    )  # active | past_due | canceled | ... (mirrors Stripe)
    platform_fee_bps = db.Column(db.Integer, nullable=True)  # override, from price metadata

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def has_active_subscription(self):
        return self.subscription_status == "active"

    def __repr__(self):
        return f"<Artist {self.id} ({self.subscription_tier})>"
