"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, storage, map defaults and completion API settings.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache
import os


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    # Application configuration
    app_name: str = "Real Estate Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/marketplace"

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7

    # Image storage
    upload_dir: str = "./uploads"
    public_media_url: str = "/media"
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    allowed_file_types: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Pagination defaults
    default_page_size: int = 20
    max_page_size: int = 100

    # Map defaults (Cuenca, Ecuador)
    map_default_latitude: float = -2.9001
    map_default_longitude: float = -79.0058
    map_default_zoom: int = 12

    # Appointments are scheduled in the marketplace's local time
    business_timezone: str = "America/Guayaquil"

    # Completion API (OpenAI-compatible chat completions)
    completion_api_key: Optional[str] = None
    completion_base_url: str = "https://api.openai.com/v1"
    completion_model: str = "gpt-4o-mini"
    completion_timeout: float = 30.0

    # Rate limiting
    rate_limit_enabled: bool = True

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def create_upload_directory(cls, v):
        """Ensure the upload directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing" or self.testing

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
