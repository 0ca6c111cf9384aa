"""Application configuration and settings management."""
import json
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    APP_NAME: str = "hotel-scout"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    BASE_URL: str = "http://localhost:8000"
    API_PREFIX: str = "/api"
    # NOTE: Keep this as a string to avoid pydantic attempting JSON decode before validators.
    # Expose a parsed property `ALLOWED_ORIGINS` below for application use.
    ALLOWED_ORIGINS_RAW: str = Field("*", alias="ALLOWED_ORIGINS")

    # MCP server: "stdio", or a network transport such as "http" or "sse"
    MCP_TRANSPORT: Literal["stdio", "http", "streamable-http", "sse"] = "stdio"

    # Hotel inventory provider
    PROVIDER_NAME: str = "marriott"
    PROVIDER_BASE_URL: str = "https://www.marriott.com"
    PROVIDER_API_PATH: str = "/mi/query"
    PROVIDER_ASSET_BASE_URL: str = "https://cache.marriott.com"

    # Timeouts
    REQUEST_TIMEOUT: float = 30.0  # seconds

    # Search
    SEARCH_PAGE_SIZE: int = Field(5, ge=1)
    FACET_BUCKET_LIMIT: int = Field(20, ge=1)
    # None keeps exact coordinate matching for the discovery gate.
    LOCATION_KEY_PRECISION: Optional[int] = Field(None, ge=0, le=10)

    # Discovery sessions
    SESSION_TTL_SECONDS: int = 6 * 60 * 60
    SESSION_MAX_ENTRIES: int = 1000

    # Rates lookups
    RATES_MAX_RETRIES: int = Field(3, ge=1)
    RATES_REQUEST_DELAY: float = 0.5  # seconds, plus up to the same again as jitter
    RATES_MAX_RETRY_WAIT: float = 60.0  # seconds

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse ALLOWED_ORIGINS from the raw string value.
        Supports:
        - JSON array string: '["http://a","http://b"]'
        - Comma-separated string: 'http://a,http://b'
        - Asterisk '*': allow all
        """
        raw = (self.ALLOWED_ORIGINS_RAW or "").strip()
        if not raw or raw == "*":
            return ["*"]
        if raw.startswith("[") and raw.endswith("]"):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                data = None
            if isinstance(data, list):
                return [str(x) for x in data if str(x).strip()]
        return [p.strip() for p in raw.split(",") if p.strip()]

    @property
    def provider_api_url(self) -> str:
        """Base URL that GraphQL operation names are appended to."""
        return f"{self.PROVIDER_BASE_URL.rstrip('/')}/{self.PROVIDER_API_PATH.strip('/')}"


@lru_cache()
def get_settings() -> Settings:
    """Get application settings with caching.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
