"""
Centralized configuration for the Ads Dashboard.

Configuration is loaded from environment variables (and an optional .env
file) once at startup and passed explicitly to the app factory.

Usage:
    from core.config import load_config

    config = load_config()
    db_path = config.database.path
    window = config.stats.window_days
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEV_SECRET_KEY = "dev-secret-change-me"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class DatabaseConfig:
    """DuckDB store configuration."""

    path: str = field(default_factory=lambda: os.getenv("DATABASE_PATH", "data/dashboard.duckdb"))


@dataclass(frozen=True)
class AuthConfig:
    """Session token and cookie configuration."""

    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", ""))
    cookie_name: str = "auth_token"
    session_max_age: int = 7 * 24 * 60 * 60  # 7 days
    cookie_secure: bool = field(default_factory=lambda: _env_bool("COOKIE_SECURE"))


@dataclass(frozen=True)
class WebConfig:
    """Web server configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "3389")))

    # Rate limiting
    rate_limit_enabled: bool = field(default_factory=lambda: _env_bool("RATE_LIMIT_ENABLED", "true"))


@dataclass(frozen=True)
class StatsConfig:
    """Dashboard statistics configuration."""

    window_days: int = 30
    growth_window_days: int = 7
    top_campaigns_limit: int = 10

    # Day boundaries for daily buckets are taken in this time zone
    timezone: str = field(default_factory=lambda: os.getenv("REPORT_TIMEZONE", "Asia/Shanghai"))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    env: str = field(default_factory=lambda: os.getenv("APP_ENV", "dev"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "text"))
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    web: WebConfig = field(default_factory=WebConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


def load_config() -> AppConfig:
    """Build the application configuration from the current environment."""
    config = AppConfig()
    if not config.auth.secret_key and config.is_dev:
        # Development fallback so the app boots without a .env file
        config = AppConfig(auth=AuthConfig(secret_key=DEV_SECRET_KEY))
    return config


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(config: AppConfig) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Raises:
        ConfigurationError: If required configuration is missing
    """
    errors = []

    if not config.auth.secret_key:
        errors.append("SECRET_KEY is required but not set")
    elif not config.is_dev and config.auth.secret_key == DEV_SECRET_KEY:
        errors.append(f"SECRET_KEY uses the development default in {config.env!r} environment")

    if not config.database.path:
        errors.append("DATABASE_PATH is required but not set")

    if config.stats.window_days < 1:
        errors.append("Stats window must be at least one day")

    try:
        from zoneinfo import ZoneInfo
        ZoneInfo(config.stats.timezone)
    except Exception:
        errors.append(f"REPORT_TIMEZONE is not a known time zone: {config.stats.timezone!r}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
