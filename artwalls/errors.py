"""Settlement error taxonomy.

- Configuration errors fail the originating request and are never retried.
- Precondition errors are user-correctable (sold artwork, onboarding not
  finished) and surface to the checkout caller.
- Settlement failures abort a webhook handler so the provider redelivers
  the event later. PartialSettlementError marks the case where some
  transfers for an order already went out.

Duplicate webhook deliveries are not errors and have no class here.
"""


class SettlementError(Exception):
    """Base class. status_code is the HTTP status used at the API edge."""

    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


# ── Configuration ──

class ConfigurationError(SettlementError):
    """Checkout is misconfigured."""


class FeeConfigurationError(ConfigurationError):
    """Fee rates are invalid for this price."""


class MissingPriceError(ConfigurationError):
    """Artwork has no valid price."""

    status_code = 400


# ── Preconditions (checkout) ──

class CheckoutPreconditionError(SettlementError):
    """Checkout cannot start."""

    status_code = 409


class ArtworkNotFound(CheckoutPreconditionError):
    """Artwork not found"""

    status_code = 404


class ArtworkUnavailable(CheckoutPreconditionError):
    """Artwork is no longer available"""

    status_code = 410


class PayoutsNotReady(CheckoutPreconditionError):
    """Payouts not set up yet"""

    def __init__(self, role):
        self.role = role
        super().__init__(f"{role.capitalize()} payouts not set up yet")


# ── Settlement (webhook path, retried by the provider) ──

class SettlementFailed(SettlementError):
    """Settlement could not complete."""


class OrderNotFound(SettlementFailed):
    """Order referenced by the checkout session does not exist."""


class MissingChargeError(SettlementFailed):
    """Completed session has no settled charge."""


class PayoutAccountMissing(SettlementFailed):
    """Payee has no connected account to transfer to."""


class PartialSettlementError(SettlementFailed):
    """Some transfers for the order succeeded, at least one failed."""

    def __init__(self, order_id, completed_roles, failed_role, message=None):
        self.order_id = order_id
        self.completed_roles = list(completed_roles)
        self.failed_role = failed_role
        super().__init__(
            message
            or f"Order {order_id}: {failed_role} transfer failed after "
               f"{', '.join(self.completed_roles)} transfer(s) succeeded"
        )
