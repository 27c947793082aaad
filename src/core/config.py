from typing import Literal, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./rentals.db"

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    # Can be a comma-separated string or list
    cors_allowed_origins: Union[str, list[str]] = "http://localhost:3000,http://localhost:5173"

    # Reservations
    # "sql" keeps reservations in database_url, "memory" is for local runs without a database.
    store_backend: Literal["sql", "memory"] = "sql"
    auto_create_schema: bool = False
    # Upper bound for waiting on a per-item lock before the call fails as unavailable.
    lock_timeout_seconds: float = 5.0
    fulfillment_code_length: int = 8
    # Notifications kept by the default in-memory notifier.
    notification_history_limit: int = 1000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v):
        """Convert postgres:// or postgresql:// to postgresql+asyncpg:// for Railway/Heroku."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if isinstance(v, str):
            if v.startswith("postgres://"):
                return v.replace("postgres://", "postgresql+asyncpg://", 1)
            elif v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("lock_timeout_seconds")
    @classmethod
    def check_lock_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("LOCK_TIMEOUT_SECONDS must be positive")
        return v


settings = Settings()
