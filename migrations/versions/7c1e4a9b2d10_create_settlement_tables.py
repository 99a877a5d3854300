"""Create settlement tables

Revision ID: 7c1e4a9b2d10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c1e4a9b2d10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    ]


def upgrade():
    op.create_table('artists',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('stripe_account_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_payouts_enabled', sa.Boolean(), nullable=True),
        sa.Column('stripe_charges_enabled', sa.Boolean(), nullable=True),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('subscription_tier', sa.String(length=50), nullable=False, server_default='free'),
        sa.Column('subscription_status', sa.String(length=50), nullable=True),
        sa.Column('platform_fee_bps', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_artists_stripe_account_id', 'artists', ['stripe_account_id'])
    op.create_index('ix_artists_stripe_subscription_id', 'artists', ['stripe_subscription_id'])

    op.create_table('venues',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('stripe_account_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_payouts_enabled', sa.Boolean(), nullable=True),
        sa.Column('stripe_charges_enabled', sa.Boolean(), nullable=True),
        sa.Column('default_venue_fee_bps', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_venues_stripe_account_id', 'venues', ['stripe_account_id'])

    op.create_table('artworks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('artist_id', sa.String(length=36), nullable=False),
        sa.Column('venue_id', sa.String(length=36), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='usd'),
        sa.Column('venue_fee_bps', sa.Integer(), nullable=True),
        sa.Column('stripe_product_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='available'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['artist_id'], ['artists.id']),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('artwork_id', sa.String(length=36), nullable=False),
        sa.Column('artist_id', sa.String(length=36), nullable=False),
        sa.Column('venue_id', sa.String(length=36), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('buyer_email', sa.String(length=255), nullable=True),
        sa.Column('platform_fee_bps', sa.Integer(), nullable=False),
        sa.Column('venue_fee_bps', sa.Integer(), nullable=False),
        sa.Column('platform_fee_cents', sa.Integer(), nullable=False),
        sa.Column('venue_payout_cents', sa.Integer(), nullable=False),
        sa.Column('artist_payout_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='created'),
        sa.Column('stripe_checkout_session_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_payment_intent_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_charge_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'platform_fee_cents + venue_payout_cents + artist_payout_cents = amount_cents',
            name='ck_orders_split_sums_to_amount',
        ),
        sa.CheckConstraint('artist_payout_cents >= 0', name='ck_orders_artist_payout_nonneg'),
        sa.ForeignKeyConstraint(['artwork_id'], ['artworks.id']),
        sa.ForeignKeyConstraint(['artist_id'], ['artists.id']),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_checkout_session_id')
    )
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table('order_transfers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('recipient_role', sa.String(length=20), nullable=False),
        sa.Column('recipient_account_id', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('stripe_transfer_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'recipient_role', name='uq_order_transfer_role'),
        sa.UniqueConstraint('stripe_transfer_id')
    )

    op.create_table('processed_events',
        sa.Column('stripe_event_id', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=255), nullable=False),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('stripe_event_id')
    )

    op.create_table('outbox_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('kind', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_outbox_messages_status', 'outbox_messages', ['status'])

    op.create_table('audit_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('artist_id', sa.String(length=36), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['artist_id'], ['artists.id']),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('audit_events')
    op.drop_index('ix_outbox_messages_status', table_name='outbox_messages')
    op.drop_table('outbox_messages')
    op.drop_table('processed_events')
    op.drop_table('order_transfers')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_table('orders')
    op.drop_table('artworks')
    op.drop_index('ix_venues_stripe_account_id', table_name='venues')
    op.drop_table('venues')
    op.drop_index('ix_artists_stripe_subscription_id', table_name='artists')
    op.drop_index('ix_artists_stripe_account_id', table_name='artists')
    op.drop_table('artists')
