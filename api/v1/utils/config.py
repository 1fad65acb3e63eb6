from functools import lru_cache
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Credit Tracker API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SERVER_PORT: int = 5001

    DATABASE_URL: str = "sqlite:///./credit_tracker.db"

    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    OTP_TTL_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3

    MAIL_BACKEND: Literal["smtp", "console"] = "console"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "no-reply@credittracker.local"
    MAIL_FROM_NAME: str = "Credit Tracker"

    CORS_ORIGINS: List[str] = ["http://localhost:8080"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
