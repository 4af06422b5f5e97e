# barbershop/config.py

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from the environment (or .env)."""

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./barber.db")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    DB_ECHO: bool = Field(default=False)

    # Security
    SECRET_KEY: str = Field(default="change-me-later")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Provisioning (admin account created by barbershop.provision)
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Booking
    BUSINESS_TIMEZONE: str = Field(default="America/Argentina/Buenos_Aires")
    SLOT_STEP_MINUTES: int = Field(default=30, gt=0)
    SLOT_RESULT_LIMIT: int = Field(default=240, gt=0)
    MATERIALIZE_DAYS_DEFAULT: int = Field(default=60, ge=1)
    MATERIALIZE_DAYS_MAX: int = Field(default=120, ge=1)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    DEBUG: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
