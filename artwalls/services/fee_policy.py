"""Fee policy: the three-way split of a sale price.

split(amount_cents, venue_bps, platform_bps) -> FeeSplit

- venue and platform legs are amount * bps / 10000, rounded half away
  from zero in integer arithmetic (no floats, so no off-by-one-cent drift)
- the artist leg is the remainder, so the three legs always sum to the
  amount exactly
- a negative artist leg means the rates are too high for the price; that
  is a configuration error and is raised, never clamped

Pure: no I/O, no app context.
"""

from dataclasses import asdict, dataclass

from artwalls.errors import FeeConfigurationError

BPS_DENOMINATOR = 10000


def round_half_away(numerator, denominator):
    """Integer division rounded half away from zero.

    round_half_away(12345 * 1000, 10000) == 1235   (1234.5 -> 1235)
    round_half_away(-5, 10) == -1                   (-0.5 -> -1)
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    sign = -1 if numerator < 0 else 1
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return sign * quotient


@dataclass(frozen=True)
class FeeSplit:
    amount_cents: int
    venue_fee_bps: int
    platform_fee_bps: int
    platform_fee_cents: int
    venue_payout_cents: int
    artist_payout_cents: int

    def to_dict(self):
        return asdict(self)


def _require_int(name, value):
    # bool is an int subclass; a True amount is a bug, not a cent.
    if isinstance(value, bool) or not isinstance(value, int):
        raise FeeConfigurationError(f"{name} must be an integer, got {value!r}")


def split(amount_cents, venue_bps, platform_bps):
    """Compute the platform / venue / artist split for one sale."""
    _require_int("amount_cents", amount_cents)
    _require_int("venue_bps", venue_bps)
    _require_int("platform_bps", platform_bps)

    if amount_cents < 0:
        raise FeeConfigurationError(f"amount_cents must be >= 0, got {amount_cents}")
    if venue_bps < 0 or platform_bps < 0:
        raise FeeConfigurationError(
            f"Fee rates must be >= 0 (venue={venue_bps}, platform={platform_bps})"
        )

    venue_payout = round_half_away(amount_cents * venue_bps, BPS_DENOMINATOR)
    platform_fee = round_half_away(amount_cents * platform_bps, BPS_DENOMINATOR)
    artist_payout = amount_cents - venue_payout - platform_fee

    if artist_payout < 0:
        raise FeeConfigurationError(
            f"Fee rates too high for price: venue={venue_bps}bps "
            f"platform={platform_bps}bps leave artist payout "
            f"{artist_payout} on {amount_cents} cents"
        )

    return FeeSplit(
        amount_cents=amount_cents,
        venue_fee_bps=venue_bps,
        platform_fee_bps=platform_bps,
        platform_fee_cents=platform_fee,
        venue_payout_cents=venue_payout,
        artist_payout_cents=artist_payout,
    )
