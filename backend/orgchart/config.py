from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service and client settings, read from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Org Chart Directory"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Persistence service
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    database_url: str = "postgresql+asyncpg://orgchart:orgchart@db:5432/orgchart"
    database_echo: bool = False
    cors_origins: list[str] = ["*"]

    # Directory client
    api_url: str = "http://localhost:8000/api"
    api_timeout_seconds: float = 10.0


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
