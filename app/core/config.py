# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///./tickets.db")
    APP_NAME: str = "Rapid Ticketing API"
    APP_DESC: str = "Issue tickets routed to supervisors, worked by technicians"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # CORS origins, comma separated
    CORS_ORIGINS: str | None = None

    # Alert scan
    SCHEDULER_ENABLED: bool = True
    NOTIFY_INTERVAL_MINUTES: int = Field(default=5, ge=1)
    ALERT_RETENTION_DAYS: int = Field(default=3, ge=1)
    ALERT_MESSAGE_CHARS: int = Field(default=250, ge=1)
    # zone whose calendar date counts as "today" for due dates
    TIMEZONE: str = "UTC"

    # Outbound mail; sender credentials come from the contact directory
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USE_SSL: bool = True
    SMTP_TIMEOUT_SECONDS: float = 10.0
    MAIL_SIGNATURE: str = "Rapid Ticketing System"

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
