import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv


_BACKEND_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _BACKEND_DIR.parent

# Root .env is canonical; backend/.env remains a fallback.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_BACKEND_DIR / ".env")

_PLACEHOLDER_SECRET = "change-me-in-production"


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_int_env(*names: str, default: int) -> int:
    """Parses the first non-empty env var in `names` as int, else returns `default`."""
    raw = _first_non_empty_env(*names, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class BaseConfig:

    # Token signing secret. Injected into TokenService by the app factory.
    AUTH_SECRET: str = _first_non_empty_env(
        "AUTH_SECRET",
        "JWT_SECRET_KEY",
        default=_PLACEHOLDER_SECRET,
    )

    # Flask secret. Falls back to AUTH_SECRET.
    SECRET_KEY: str = _first_non_empty_env(
        "SECRET_KEY",
        "AUTH_SECRET",
        default=_PLACEHOLDER_SECRET,
    )

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    JSON_SORT_KEYS: bool = False

    # Token lifetimes are part of the client contract: not read from env.
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRES:  timedelta = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES: timedelta = timedelta(days=7)

    REFRESH_COOKIE_NAME: str = "refreshToken"
    REFRESH_COOKIE_SECURE: bool = True

    BCRYPT_LOG_ROUNDS: int = 12

    CLIENT_BASE_URL: str = os.getenv("CLIENT_BASE_URL", "http://localhost:5173")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    DEFAULT_EXPERIENCE_LIMIT:   int = _parse_int_env("DEFAULT_EXPERIENCE_LIMIT", default=10)
    DEFAULT_USER_LIMIT:         int = _parse_int_env("DEFAULT_USER_LIMIT", default=10)
    DEFAULT_NOTIFICATION_LIMIT: int = _parse_int_env("DEFAULT_NOTIFICATION_LIMIT", default=10)


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    SQLALCHEMY_DATABASE_URI: str = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{_BACKEND_DIR / 'experiences.db'}",
    )
    SQLALCHEMY_ECHO: bool = False
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    # In-memory SQLite; Flask-SQLAlchemy pins it to a single shared connection.
    SQLALCHEMY_DATABASE_URI: str = os.getenv("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ECHO: bool = False

    AUTH_SECRET: str = "testing-secret-with-at-least-32-bytes-of-key"
    BCRYPT_LOG_ROUNDS: int = 4


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False
    SQLALCHEMY_ECHO: bool = False

    # Heroku / Render return 'postgres://' which SQLAlchemy 1.4+ rejects;
    # normalise to 'postgresql://'.
    _raw_db_url: str = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI: str = (
        _raw_db_url.replace("postgres://", "postgresql://", 1)
        if _raw_db_url.startswith("postgres://")
        else _raw_db_url
    )


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Called in the app factory right after loading ProductionConfig.
    Raises ValueError if any required production value is missing or insecure.
    """
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise ValueError(
            "DATABASE_URL environment variable is required in production."
        )
    if app.config.get("AUTH_SECRET") == _PLACEHOLDER_SECRET:
        raise ValueError(
            "AUTH_SECRET must be set to a strong random value in production. "
            "Do not use the default placeholder."
        )
    if app.config.get("SECRET_KEY") == _PLACEHOLDER_SECRET:
        raise ValueError(
            "SECRET_KEY must be set to a strong random value in production. "
            "Do not use the default placeholder."
        )


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   from config import config_by_name
#   app.config.from_object(config_by_name[flask_env])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}

ActiveConfig: type[BaseConfig] = config_by_name.get(
    os.getenv("FLASK_ENV", "development"),
    DevelopmentConfig,
)
