"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="Inventory Assistant", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    openai_api_key: str | None = Field(
        default=None,
        description="API key for the chat completion service. Empty disables generation.",
    )
    openai_model: str = Field(default="gpt-4o-mini", description="Chat completion model identifier.")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible completion API.",
    )
    generation_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Request timeout for a single completion call.",
    )
    generation_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    generation_max_tokens: int = Field(default=500, ge=1)

    session_ttl_seconds: int = Field(
        default=7200,
        ge=1,
        description="Inactivity window after which a chat session is discarded.",
    )
    session_history_limit: int = Field(
        default=10,
        ge=1,
        description="Maximum number of messages retained per session.",
    )

    inventory_db_path: Path = Field(
        default=Path("../db/inventory.db"),
        description="Inventory SQLite database path.",
    )
    high_usage_threshold: int = Field(
        default=20,
        ge=1,
        description="Units used per item per day above which usage is flagged.",
    )

    frontend_origin: AnyHttpUrl | None = Field(
        default=None,
        description="Allowed frontend origin (CORS). If omitted, defaults to localhost dev server.",
    )
    additional_origins: List[AnyHttpUrl] = Field(
        default_factory=list,
        description="Additional allowed CORS origins.",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Return the full list of allowed CORS origins."""

        origins: list[str] = []
        if self.frontend_origin:
            origins.append(str(self.frontend_origin).rstrip("/"))
        else:
            origins.extend(["http://localhost:3000", "http://127.0.0.1:3000"])

        origins.extend(str(origin).rstrip("/") for origin in self.additional_origins)

        # Deduplicate while preserving order
        return list(dict.fromkeys(origins))

    @property
    def completions_url(self) -> str:
        return f"{self.openai_base_url.rstrip('/')}/chat/completions"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
