from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from fixer.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production"] = "production"

    # Marketplace backend
    BACKEND_API_URL: str = "http://localhost:3000"
    BACKEND_TIMEOUT_SECONDS: float = 10.0
    BACKEND_MAX_RETRIES: int = 3
    CANDIDATE_FETCH_LIMIT: int = 50
    DETAIL_CACHE_TTL_SECONDS: int = 300
    # Upper bound on parallel detail fetches when filling in missing coordinates
    DETAIL_CONCURRENCY: int = 10

    # Location
    LOCATION_TTL_SECONDS: int = 1800  # 30 minutes
    LOCATION_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_ORIGIN_LAT: float | None = None
    DEFAULT_ORIGIN_LNG: float | None = None

    # Sessions
    SESSION_TTL_SECONDS: int = 3600
    SESSION_MAX_COUNT: int = 1000

    # Service search
    SEARCH_MAX_RESULTS: int = 10
    FUZZY_PASS_THRESHOLD: int = 5


settings = Settings()

APP_VERSION = __version__
