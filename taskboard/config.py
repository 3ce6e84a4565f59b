import os


def _env_flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


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

    # --- Sessions ---
    SESSION_LIFETIME_DAYS = int(os.environ.get("SESSION_LIFETIME_DAYS", 30))
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "session")
    AUTH_COOKIE_DOMAIN = os.environ.get("AUTH_COOKIE_DOMAIN") or None
    AUTH_COOKIE_SECURE = _env_flag("AUTH_COOKIE_SECURE")
    # Flask's own signed cookie must not collide with the auth cookie.
    SESSION_COOKIE_NAME = "flask_session"

    # --- CORS (SPA frontend on another origin) ---
    CORS_ALLOW_ORIGIN = os.environ.get("CORS_ALLOW_ORIGIN")

    # --- SQLAlchemy ---
    # Statement timeout (Postgres only). A timed-out statement aborts the
    # request's unit of work and everything in it is rolled back.
    DB_STATEMENT_TIMEOUT_MS = int(os.environ.get("DB_STATEMENT_TIMEOUT_MS", 0))

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    if DB_STATEMENT_TIMEOUT_MS and SQLALCHEMY_DATABASE_URI and (
        SQLALCHEMY_DATABASE_URI.startswith("postgresql")
    ):
        SQLALCHEMY_ENGINE_OPTIONS["connect_args"] = {
            "options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
        }

    # --- Rate limiting ---
    RATELIMIT_ENABLED = True

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///taskboard-dev.db"
    AUTH_COOKIE_SECURE = False


class TestConfig(Config):
    """Testing — in-memory SQLite, rate limits off."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SESSION_LIFETIME_DAYS = 30
    AUTH_COOKIE_NAME = "session"
    AUTH_COOKIE_DOMAIN = None
    AUTH_COOKIE_SECURE = False
    CORS_ALLOW_ORIGIN = "http://localhost:5173"
    RATELIMIT_ENABLED = False  # disable rate limiting in tests

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False
    AUTH_COOKIE_SECURE = True


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
