"""
Environment-aware configuration.
Values come from the process environment, with a .env file loaded first.
Durations (token TTLs) are strings like "15m", "12h", "30d" or bare seconds.
"""
import os
import re
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()  # Read .env if present

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value) -> timedelta:
    """Parse "15m" / "30d" / "3600" into a timedelta."""
    if isinstance(value, timedelta):
        return value
    match = _DURATION_RE.match(str(value).lower())
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    delta = timedelta(**{_UNITS[unit]: int(amount)})
    if delta <= timedelta(0):
        raise ValueError(f"Duration must be positive: {value!r}")
    return delta


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///team-manager.db")
    SQL_ECHO = _flag("SQL_ECHO")

    # Token settings
    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "team-manager-api")
    ACCESS_TOKEN_TTL = parse_duration(os.getenv("ACCESS_TOKEN_TTL", "15m"))
    REFRESH_TOKEN_TTL = parse_duration(os.getenv("REFRESH_TOKEN_TTL", "30d"))
    REFRESH_TOKEN_ROTATION = _flag("REFRESH_TOKEN_ROTATION")

    # Argon2 cost (argon2-cffi defaults)
    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "4"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-dev-secret-change-me")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-secret-key-for-testing-only-do-not-use-in-production"
    ACCESS_TOKEN_TTL = timedelta(minutes=15)
    REFRESH_TOKEN_TTL = timedelta(days=30)
    REFRESH_TOKEN_ROTATION = False
    # Cheap hashing keeps the suite fast
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
