# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    APP_NAME: str = "Helpdesk API"
    APP_DESC: str = "In-memory support ticket service"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "production"  # "development" exposes fault details

    HOST: str = "0.0.0.0"
    PORT: int = Field(default=4000, ge=1, le=65535)

    # Photo uploads
    MAX_UPLOAD_SIZE: int = Field(default=5 * 1024 * 1024, gt=0)

    # Retention sweep; 0 disables it
    TICKET_RETENTION_DAYS: int = Field(default=30, gt=0)
    CLEANUP_INTERVAL_SECONDS: int = Field(default=24 * 60 * 60, ge=0)

    SHUTDOWN_TIMEOUT: int = Field(default=5, ge=0)
    LOG_LEVEL: str = "INFO"

    # CORS origins, comma separated
    CORS_ORIGINS: str | None = None

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
