"""Environment-driven settings for the security core.

``APP_ENV`` selects one of the config classes below; individual values are
read from the process environment (a ``.env`` file is loaded when present).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"

DEV_ACCESS_SECRET: Final[str] = "dev-access-secret"
DEV_REFRESH_SECRET: Final[str] = "dev-refresh-secret"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag.

    Parameters
    ----------
    name: str
        Variable name.
    default: bool, optional
        Returned when the variable is absent.

    Returns
    -------
    bool
        Whether the (case-insensitive) value is one of ``1/true/yes/y/on``.
    """
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Read an integer; blank or missing values yield ``default``."""
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


class BaseConfig:
    """Settings common to every environment.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Mount point of the versioned blueprints.
    JWT_ACCESS_SECRET / JWT_REFRESH_SECRET: str
        Independent HMAC keys for the two token types.
    JWT_ALGORITHM: str
        PyJWT signing algorithm.
    JWT_ACCESS_TTL_MINUTES / JWT_REFRESH_TTL_DAYS: int
        Token lifetimes.
    JWT_LEEWAY_SECONDS: int
        Clock skew accepted when checking ``exp``.
    TOKEN_HASH_METHOD: str
        Werkzeug method used to hash refresh tokens at rest.
    TOKEN_STORE_BACKEND: str
        ``"sql"``, ``"redis"`` or ``"memory"``.
    REDIS_URL: str | None
        Required by the ``redis`` backend.
    CAS_MAX_ATTEMPTS: int
        Retry budget for issue/revoke writes that lose a version race.
    REFRESH_REUSE_REVOKES_ALL: bool
        On replay of a consumed refresh token, end every session of its owner.
    PII_NUMERIC_ID_GUARD: bool
        Enable the grouped-digits identifier detector.
    CORS_ORIGINS: str
        Comma-separated browser origins; blank or ``*`` allows any.
    CORS_MAX_AGE: int
        Preflight cache lifetime in seconds.
    PROXY_FIX_HOPS: int
        Trusted reverse proxies in front of the app; ``0`` disables ProxyFix.
    LOG_LEVEL: str
        Root logger level.
    """

    API_BASE_PREFIX = "/api"

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TTL_MINUTES = env_int("JWT_ACCESS_TTL_MINUTES", 15)
    JWT_REFRESH_TTL_DAYS = env_int("JWT_REFRESH_TTL_DAYS", 7)
    JWT_LEEWAY_SECONDS = env_int("JWT_LEEWAY_SECONDS", 0)
    TOKEN_HASH_METHOD = os.getenv("TOKEN_HASH_METHOD", "scrypt")

    TOKEN_STORE_BACKEND = os.getenv("TOKEN_STORE_BACKEND", "sql")
    REDIS_URL = os.getenv("REDIS_URL")
    CAS_MAX_ATTEMPTS = env_int("CAS_MAX_ATTEMPTS", 3)
    REFRESH_REUSE_REVOKES_ALL = env_bool("REFRESH_REUSE_REVOKES_ALL", False)

    PII_NUMERIC_ID_GUARD = env_bool("PII_NUMERIC_ID_GUARD", True)

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
    CORS_MAX_AGE = env_int("CORS_MAX_AGE", 600)
    PROXY_FIX_HOPS = env_int("PROXY_FIX_HOPS", 0)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local runs: debug on unless ``FLASK_DEBUG`` says otherwise."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Test runs.

    In-memory SQLite (or ``TEST_DATABASE_URL``), the SQL token store and a
    cheap hash method so rotation-heavy suites stay fast.
    """

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    TOKEN_HASH_METHOD = "pbkdf2:sha256:1000"
    TOKEN_STORE_BACKEND = "sql"
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Deployed runs. :func:`validate_secrets` refuses the development keys."""

    SQLALCHEMY_ECHO = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class for ``APP_ENV``; unknown or unset values mean development."""
    return CONFIG_MAP.get(os.getenv(ENV_VAR, "development").strip().lower(), DevelopmentConfig)


def validate_secrets(config: Mapping[str, object]) -> None:
    """Reject placeholder or identical signing secrets outside debug/testing.

    :param config: Flask config mapping.
    :raises RuntimeError: When the secrets are unsafe for production use.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    if access in (None, "", DEV_ACCESS_SECRET) or refresh in (None, "", DEV_REFRESH_SECRET):
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be configured.")
    if access == refresh:
        raise RuntimeError("Access and refresh tokens must be signed with distinct secrets.")
