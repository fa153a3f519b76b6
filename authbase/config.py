"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "authbase API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(
        default="development", pattern="^(development|staging|production|test)$"
    )
    DEBUG: bool = Field(default=False)
    API_V1_STR: str = "/api/v1"

    # Token signing. Optional at startup: signing without them is an
    # operation-level configuration fault, not a boot failure.
    JWT_SECRET: str | None = None
    JWT_REFRESH_SECRET: str | None = None
    JWT_ALGORITHM: str = "HS256"

    # API-key signature for machine clients
    USER_KEY: str | None = None
    SECRET_KEY: str | None = None
    API_KEY_MAX_AGE_SECONDS: int = 300

    # AES-256-GCM key for field encryption (64 hex chars or base64 of 32 bytes)
    DATA_ENCRYPTION_KEY: str | None = None

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(default=["*"])

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./authbase.db"
    DB_ECHO: bool = False
    DB_CREATE_ALL: bool = True

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_ENABLED: bool = True
    REDIS_CONNECT_TIMEOUT: float = 10.0
    REDIS_SOCKET_TIMEOUT: float = 5.0
    REDIS_RETRY_SECONDS: int = 30  # How long to stay "unavailable" before probing again

    # Rate Limiting
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 30
    RATE_LIMIT_BLOCK_SECONDS: int = 60
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"; console only applies in development

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    load_dotenv()
    return Settings()


class TokenType:
    """Session token kinds, also used as cache key prefixes"""

    ACCESS = "access"
    REFRESH = "refresh"


class UserRole:
    """User role constants"""

    USER = "user"
    ADMIN = "admin"
