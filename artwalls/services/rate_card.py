"""Rate card: resolves the basis-point rates fed into the fee policy.

Responsible for:
- Platform fee by artist subscription tier (with per-artist override)
- Venue fee by artwork override, else venue default, else card default
- Mapping a Stripe subscription price to an internal tier

A RateCard is built from app config on every checkout, so a deploy that
changes rates takes effect on the next request.
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

TIERS = ("free", "starter", "growth", "pro")
FREE_TIER = "free"


@dataclass(frozen=True)
class RateCard:
    tier_platform_fee_bps: dict = field(default_factory=dict)
    default_platform_fee_bps: int = 2500
    default_venue_fee_bps: int = 1000

    @classmethod
    def from_config(cls, config):
        return cls(
            tier_platform_fee_bps=dict(config.get("TIER_PLATFORM_FEE_BPS") or {}),
            default_platform_fee_bps=int(config.get("DEFAULT_PLATFORM_FEE_BPS", 2500)),
            default_venue_fee_bps=int(config.get("DEFAULT_VENUE_FEE_BPS", 1000)),
        )

    def platform_fee_bps_for_tier(self, tier):
        return self.tier_platform_fee_bps.get(tier, self.default_platform_fee_bps)


def normalize_tier(value, fallback=FREE_TIER):
    """Lowercase a tier name; unknown or empty values become the fallback."""
    tier = str(value or "").strip().lower()
    return tier if tier in TIERS else fallback


def platform_fee_bps_for_artist(artist, rate_card):
    """Platform fee for a sale by this artist.

    Inactive subscription  -> free-tier rate (override ignored)
    Override on the artist -> override
    Otherwise              -> tier rate (unknown tier -> card default)
    """
    if artist is None or not artist.has_active_subscription:
        return rate_card.platform_fee_bps_for_tier(FREE_TIER)

    if artist.platform_fee_bps is not None:
        return int(artist.platform_fee_bps)

    tier = str(artist.subscription_tier or FREE_TIER).lower()
    return rate_card.platform_fee_bps_for_tier(tier)


def venue_fee_bps_for_artwork(artwork, venue, rate_card):
    """Venue commission for this artwork. No venue assigned -> 0."""
    if venue is None:
        return 0
    if artwork.venue_fee_bps is not None:
        return int(artwork.venue_fee_bps)
    if venue.default_venue_fee_bps is not None:
        return int(venue.default_venue_fee_bps)
    return rate_card.default_venue_fee_bps


def _price_metadata(price):
    if not price:
        return {}
    return price.get("metadata") or {}


def tier_from_price(price, fallback_tier=None):
    """Map a Stripe Price to a tier via its metadata, else the fallback."""
    metadata = _price_metadata(price)
    return normalize_tier(
        metadata.get("tier"), fallback=normalize_tier(fallback_tier)
    )


def fee_override_from_price(price):
    """Per-price platform fee override (metadata platform_fee_bps / fee_bps).

    Returns None when absent or not a non-negative integer.
    """
    metadata = _price_metadata(price)
    raw = metadata.get("platform_fee_bps") or metadata.get("fee_bps")
    if raw in (None, ""):
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning(f"Ignoring non-integer platform fee override on price: {raw!r}")
        return None
    return value if value >= 0 else None
