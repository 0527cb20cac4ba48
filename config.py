from __future__ import annotations

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    storage_backend: Literal["memory", "mongo"] = "memory"
    store_path: Optional[str] = None

    database_url: Optional[str] = None
    database_name: str = "melodymart"

    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    assistant_model: str = "gpt-4o-mini"
    assistant_temperature: float = 0.7

    # Off by default: any status may overwrite any other.
    strict_order_transitions: bool = False

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    port: int = 8000


def load_settings() -> Settings:
    """Provide a reusable settings singleton."""

    return Settings()


settings = load_settings()
