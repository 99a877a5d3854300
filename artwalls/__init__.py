import os
import logging

import click
from flask import Flask, jsonify

from artwalls.config import config_by_name
from artwalls.extensions import db, migrate, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from artwalls import models  # noqa: F401

    # --- Register blueprints ---
    from artwalls.blueprints.checkout import checkout_bp
    from artwalls.blueprints.webhooks import webhooks_bp

    app.register_blueprint(checkout_bp)
    app.register_blueprint(webhooks_bp)

    # --- Error handlers (JSON API, no templates) ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "Too many requests. Please try again shortly."}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--artist-account", default="acct_demo_artist", help="Artist Connect account id")
    @click.option("--venue-account", default="acct_demo_venue", help="Venue Connect account id")
    @click.option("--price-cents", default=10000, type=int, help="Artwork price in cents")
    def seed_demo(artist_account, venue_account, price_cents):
        """Create a demo artist + venue + artwork to run a checkout against.

        Usage:
            flask seed-demo
            flask seed-demo --artist-account acct_123 --price-cents 25000
        """
        from artwalls.models.artist import Artist
        from artwalls.models.venue import Venue
        from artwalls.models.artwork import Artwork

        artist = Artist(
            name="Demo Artist",
            email="artist@artwalls.local",
            stripe_account_id=artist_account,
            subscription_tier="free",
            subscription_status="active",
        )
        venue = Venue(
            name="Demo Cafe",
            email="venue@artwalls.local",
            stripe_account_id=venue_account,
            default_venue_fee_bps=app.config["DEFAULT_VENUE_FEE_BPS"],
        )
        db.session.add_all([artist, venue])
        db.session.flush()

        artwork = Artwork(
            title="Demo Canvas",
            artist_id=artist.id,
            venue_id=venue.id,
            price_cents=price_cents,
            currency="usd",
        )
        db.session.add(artwork)
        db.session.commit()

        click.echo("")
        click.echo("=" * 60)
        click.echo("Seed data created successfully!")
        click.echo("=" * 60)
        click.echo(f"  Artist:   {artist.id} ({artist_account})")
        click.echo(f"  Venue:    {venue.id} ({venue_account})")
        click.echo(f"  Artwork:  {artwork.id} ({price_cents} cents)")
        click.echo("")
        click.echo("Start a checkout with:")
        click.echo(
            "  curl -X POST -H 'Content-Type: application/json' "
            f"-d '{{\"artworkId\": \"{artwork.id}\"}}' "
            f"{app.config['APP_BASE_URL']}/api/stripe/create-checkout-session"
        )
        click.echo("=" * 60)

    @app.cli.command("deliver-outbox")
    @click.option("--include-failed", is_flag=True, help="Also retry messages that failed before.")
    @click.option("--limit", default=50, type=int, help="Max messages to deliver.")
    def deliver_outbox(include_failed, limit):
        """Deliver queued post-settlement messages (mark sold, deactivate listing).

        Usage:
            flask deliver-outbox
            flask deliver-outbox --include-failed
        """
        from artwalls.services.outbox_service import deliver_pending

        delivered, failed = deliver_pending(limit=limit, include_failed=include_failed)
        click.echo(f"Delivered: {delivered}  Failed: {failed}")

    @app.cli.command("show-order")
    @click.argument("order_id")
    def show_order(order_id):
        """Print an order's split, status and transfers."""
        from artwalls.services.order_service import get_order

        order = get_order(order_id)
        if order is None:
            click.echo(f"Order not found: {order_id}")
            return

        click.echo(f"Order {order.id}  status={order.status}  payouts={order.payout_state}")
        click.echo(f"  Amount:    {order.amount_cents} {order.currency}")
        click.echo(f"  Platform:  {order.platform_fee_cents} ({order.platform_fee_bps} bps)")
        click.echo(f"  Venue:     {order.venue_payout_cents} ({order.venue_fee_bps} bps)")
        click.echo(f"  Artist:    {order.artist_payout_cents}")
        for transfer in order.transfers:
            click.echo(
                f"  Transfer:  {transfer.recipient_role} {transfer.stripe_transfer_id} "
                f"-> {transfer.recipient_account_id} ({transfer.amount_cents})"
            )
