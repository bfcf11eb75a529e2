"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "MediaHub API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "production", "test"] = "development"
    LOG_LEVEL: str = "INFO"

    # API settings
    API_PREFIX: str = "/api"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Database settings
    DATABASE_URL: str
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_STATEMENT_TIMEOUT_MS: int = 15000  # PostgreSQL only, 0 disables

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        # PostgreSQL for production, SQLite for testing
        valid_schemes = [
            "postgresql://",
            "postgresql+",
            "postgres://",
            "sqlite://",
        ]
        if not any(v.startswith(scheme) for scheme in valid_schemes):
            raise ValueError(f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the log level name."""
        return str(v).upper()

    # JWT settings (tokens are issued by the auth provider)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # In-process cache
    CACHE_ENABLED: bool = True
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_DEFAULT_TTL: int = 900  # seconds
    CACHE_TTL_CHARTS: int = 600
    CACHE_TTL_ACTIVITY: int = 120


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
