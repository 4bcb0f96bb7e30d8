"""Configuration management."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field


class Settings(BaseSettings):
    """Application settings."""

    # Database (PostgreSQL) - constructed from parts
    db_host: str = "localhost"
    db_port: str = "5432"
    db_name: str = "spurchat"
    db_user: str = "spurchat"
    db_password: str = ""

    @computed_field
    @property
    def database_url(self) -> str:
        """Construct database URL from parts."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # "memory" keeps everything in-process (local dev, tests)
    store_backend: Literal["postgres", "memory"] = "postgres"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0
    llm_mock: bool = False  # Canned replies, no API calls

    # Server
    environment: Literal["development", "production"] = "development"
    frontend_url: str = "http://localhost:5173"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    # Terminal client
    api_url: str = "http://localhost:3001"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Global settings instance
settings = Settings()
