import os


def _env_int(name, default):
    """Read an integer env var, falling back to default when unset or blank."""
    raw = os.environ.get(name, "")
    if raw.strip() == "":
        return default
    return int(raw)


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    STRIPE_API_TIMEOUT = _env_int("STRIPE_API_TIMEOUT", 20)  # seconds, single attempt
    STRIPE_WEBHOOK_TOLERANCE = _env_int("STRIPE_WEBHOOK_TOLERANCE", 300)
    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:5000")

    # Hosted checkout return URLs. {artwork_id} is substituted per session.
    CHECKOUT_SUCCESS_URL = os.environ.get(
        "CHECKOUT_SUCCESS_URL", "{base}/#/purchase-{artwork_id}?status=success"
    )
    CHECKOUT_CANCEL_URL = os.environ.get(
        "CHECKOUT_CANCEL_URL", "{base}/#/purchase-{artwork_id}?status=cancel"
    )

    # Shared secret for the pre-verified forwarding path. Empty = no check.
    FORWARDED_WEBHOOK_SECRET = os.environ.get("FORWARDED_WEBHOOK_SECRET", "")

    # --- Rate card (basis points, 10000 = 100%) ---
    # Platform fee by artist subscription tier. Inactive subscriptions
    # are charged the free-tier rate.
    TIER_PLATFORM_FEE_BPS = {
        "free": _env_int("PLATFORM_FEE_BPS_FREE", 2000),
        "starter": _env_int("PLATFORM_FEE_BPS_STARTER", 500),
        "growth": _env_int("PLATFORM_FEE_BPS_GROWTH", 200),
        "pro": _env_int("PLATFORM_FEE_BPS_PRO", 0),
    }
    DEFAULT_PLATFORM_FEE_BPS = _env_int("DEFAULT_PLATFORM_FEE_BPS", 2500)
    DEFAULT_VENUE_FEE_BPS = _env_int("DEFAULT_VENUE_FEE_BPS", 1000)

    # --- Rate limiting ---
    CHECKOUT_RATE_LIMIT = os.environ.get("CHECKOUT_RATE_LIMIT", "10 per minute")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
            "STRIPE_WEBHOOK_SECRET",
            "APP_BASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True


class TestConfig(Config):
    """Testing: in-memory SQLite, rate limiting off."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    APP_BASE_URL = "http://localhost:5000"
    FORWARDED_WEBHOOK_SECRET = ""
    TIER_PLATFORM_FEE_BPS = {
        "free": 2000,
        "starter": 500,
        "growth": 200,
        "pro": 0,
    }
    DEFAULT_PLATFORM_FEE_BPS = 2500
    DEFAULT_VENUE_FEE_BPS = 1000
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode; everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
