"""Configuration management using Pydantic Settings.

Settings are loaded from environment variables and an optional ``.env`` file.
The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- HttpConfig: Transport timeouts and network-level retries
- APIConfig: Provider endpoints and per-provider request queue tuning
- MatchingConfig: Cross-provider name matching and enrichment batching
- AuthConfig: Authenticated app API and credential storage
"""

from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("logs/stellar.log")
    real_time_debug: bool = True


class HttpConfig(BaseModel):
    """Transport settings shared by every outbound call."""

    timeout: float = 10.0
    # Network-level failures only (connect errors, resets); HTTP statuses are
    # never retried by the transport
    retry_count: int = 2
    retry_base_delay: float = 0.5
    retry_max_delay: float = 5.0
    user_agent: str = "Stellar/0.1.0 (Music Discovery)"


class APIConfig(BaseModel):
    """External provider configuration and request queue tuning."""

    # Last.fm (informal limit of ~5 calls/second)
    lastfm_base_url: str = "http://localhost:3001/lastfm"
    lastfm_api_key: str = ""
    lastfm_max_concurrent: int = 4
    lastfm_request_delay: float = 0.12

    # Deezer
    deezer_base_url: str = "http://localhost:3001/deezer"
    deezer_max_concurrent: int = 5
    deezer_request_delay: float = 0.06

    # Pause applied on 429 when the provider sends no Retry-After
    default_retry_after: float = 2.0


class MatchingConfig(BaseModel):
    """Cross-provider name matching configuration."""

    search_limit: int = 5
    # Shorter/longer normalized length ratio required for containment matches;
    # 0.0 accepts any containment
    min_containment_ratio: float = 0.5
    enrichment_batch_size: int = 10


class AuthConfig(BaseModel):
    """Authenticated app API configuration."""

    api_base_url: str = "http://localhost:3001"
    token_mode: bool = False
    token_store_path: Path = Path("data/tokens.json")


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Nested values use a double underscore delimiter, e.g.
    ``API__DEEZER_MAX_CONCURRENT=3`` or ``LOGGING__CONSOLE_LEVEL=DEBUG``.

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    logging: LoggingConfig = LoggingConfig()
    http: HttpConfig = HttpConfig()
    api: APIConfig = APIConfig()
    matching: MatchingConfig = MatchingConfig()
    auth: AuthConfig = AuthConfig()


# Singleton instance for application use
settings = Settings()
