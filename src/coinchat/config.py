"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoinGeckoSettings(BaseSettings):
    """CoinGecko market-data API connection settings."""

    model_config = SettingsConfigDict(env_prefix="COINGECKO_")

    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: SecretStr = SecretStr("")  # optional demo key for higher limits
    timeout_seconds: float = 10.0
    vs_currency: str = "usd"


class RateLimitSettings(BaseSettings):
    """Sliding-window admission limits for outbound requests."""

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")

    window_seconds: float = 60.0
    max_requests_per_minute: int = 50  # orchestration layer
    direct_max_requests_per_minute: int = 10  # raw HTTP wrapper


class CacheSettings(BaseSettings):
    """Response cache TTL and background sweep interval."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    ttl_seconds: float = 300.0  # 5 minutes
    cleanup_interval_seconds: float = 600.0  # 10 minutes


class PortfolioSettings(BaseSettings):
    """Holdings ledger persistence and revaluation schedule.

    All fields configurable via PORTFOLIO_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="PORTFOLIO_")

    db_path: str = "data/coinchat.db"
    storage_key: str = "crypto-chat-portfolio"
    refresh_interval_seconds: float = 300.0  # 5 minutes


class ApiSettings(BaseSettings):
    """Chat API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" for machine-readable logs
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    cache: CacheSettings = CacheSettings()
    portfolio: PortfolioSettings = PortfolioSettings()
    api: ApiSettings = ApiSettings()
