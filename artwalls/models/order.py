"""Order models.

- Order: one purchase attempt, its fee split, and its lifecycle status.
  The only mutable financial state in the system.
- TransferRecord: one outbound payout leg (artist or venue) for an order.
  Append-only; at most one per (order, recipient role).

Lifecycle: created -> paid. Only the payout service moves an order to
paid, and only through a conditional update on status = 'created'.
"""

import uuid

from artwalls.extensions import db

ORDER_CREATED = "created"
ORDER_PAID = "paid"

ROLE_ARTIST = "artist"
ROLE_VENUE = "venue"
PAYEE_ROLES = (ROLE_ARTIST, ROLE_VENUE)  # transfer issuance order


class Order(db.Model):
    __tablename__ = "orders"

    STATUSES = [ORDER_CREATED, ORDER_PAID]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    artwork_id = db.Column(
        db.String(36), db.ForeignKey("artworks.id"), nullable=False
    )
    artist_id = db.Column(
        db.String(36), db.ForeignKey("artists.id"), nullable=False
    )
    venue_id = db.Column(
        db.String(36), db.ForeignKey("venues.id"), nullable=True
    )
    amount_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    buyer_email = db.Column(db.String(255), nullable=True)

    # Rates captured at creation; later rate changes never touch them.
    platform_fee_bps = db.Column(db.Integer, nullable=False)
    venue_fee_bps = db.Column(db.Integer, nullable=False)

    platform_fee_cents = db.Column(db.Integer, nullable=False)
    venue_payout_cents = db.Column(db.Integer, nullable=False)
    artist_payout_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(
        db.String(50), default=ORDER_CREATED, nullable=False, index=True
    )  # created | paid

    # --- Stripe correlation ---
    stripe_checkout_session_id = db.Column(
        db.String(255), unique=True, nullable=True
    )
    stripe_payment_intent_id = db.Column(db.String(255), nullable=True)
    stripe_charge_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            "platform_fee_cents + venue_payout_cents + artist_payout_cents"
            " = amount_cents",
            name="ck_orders_split_sums_to_amount",
        ),
        db.CheckConstraint(
            "artist_payout_cents >= 0", name="ck_orders_artist_payout_nonneg"
        ),
    )

    # --- Relationships ---
    transfers = db.relationship(
        "TransferRecord",
        back_populates="order",
        order_by="TransferRecord.created_at",
        cascade="all",
    )
    artwork = db.relationship("Artwork")
    artist = db.relationship("Artist")
    venue = db.relationship("Venue")

    @property
    def is_paid(self):
        return self.status == ORDER_PAID

    def payout_for(self, role):
        if role == ROLE_ARTIST:
            return self.artist_payout_cents
        if role == ROLE_VENUE:
            return self.venue_payout_cents
        raise ValueError(f"Unknown recipient role: {role}")

    def expected_payees(self):
        """Roles that receive a transfer (nonzero payout), in issuance order."""
        return [role for role in PAYEE_ROLES if self.payout_for(role) > 0]

    def transfer_for(self, role):
        for transfer in self.transfers:
            if transfer.recipient_role == role:
                return transfer
        return None

    @property
    def payout_state(self):
        """none | partial | complete, derived from recorded transfers."""
        expected = self.expected_payees()
        done = [role for role in expected if self.transfer_for(role)]
        if not done:
            return "complete" if not expected else "none"
        return "complete" if len(done) == len(expected) else "partial"

    @property
    def transfer_ids(self):
        return [
            {"recipient": t.recipient_role, "id": t.stripe_transfer_id}
            for t in self.transfers
        ]

    def to_dict(self):
        return {
            "id": self.id,
            "artworkId": self.artwork_id,
            "artistId": self.artist_id,
            "venueId": self.venue_id,
            "status": self.status,
            "amountCents": self.amount_cents,
            "currency": self.currency,
            "platformFeeBps": self.platform_fee_bps,
            "venueFeeBps": self.venue_fee_bps,
            "platformFeeCents": self.platform_fee_cents,
            "venuePayoutCents": self.venue_payout_cents,
            "artistPayoutCents": self.artist_payout_cents,
            "payoutState": self.payout_state,
            "transfers": self.transfer_ids,
        }

    def __repr__(self):
        return f"<Order {self.id} ({self.status})>"


class TransferRecord(db.Model):
    __tablename__ = "order_transfers"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id"), nullable=False
    )
    recipient_role = db.Column(db.String(20), nullable=False)  # artist | venue
    recipient_account_id = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    stripe_transfer_id = db.Column(db.String(255), unique=True, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint(
            "order_id", "recipient_role", name="uq_order_transfer_role"
        ),
    )

    # --- Relationships ---
    order = db.relationship("Order", back_populates="transfers")

    def __repr__(self):
        return f"<TransferRecord {self.recipient_role} {self.stripe_transfer_id}>"
