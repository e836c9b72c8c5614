# backend/servicehub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    database_url: str = Field(
        default="sqlite:///./servicehub.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL for the booking store",
    )
    sql_echo: bool = Field(default=False, alias="SQL_ECHO", description="Log emitted SQL")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Root log level applied by configure_logging()",
    )
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE", ge=1)
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE", ge=1)
    metrics_enabled: bool = Field(
        default=True,
        alias="METRICS_ENABLED",
        description="Record Prometheus service and transition metrics",
    )

    is_testing: bool = False  # Set to True when running tests

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.lower().startswith("sqlite")

    def clamp_page_size(self, per_page: int | None) -> int:
        """Return a page size within [1, max_page_size], defaulting when unset."""
        if not per_page:
            return self.default_page_size
        return max(1, min(int(per_page), self.max_page_size))


settings = Settings()
