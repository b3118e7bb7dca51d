"""
Configuration management for the article enhancer.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The API, CLI and scripts all consume the shared `settings`
instance so the pipeline runs with the same limits everywhere.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General application settings
    API_TITLE: str = "Article Enhancer API"
    API_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Document store / locking
    STORE_BACKEND: str = Field("mongo", pattern=r"^(mongo|memory)$")
    MONGODB_URL: AnyUrl = Field("mongodb://localhost:27017")
    MONGODB_DATABASE: str = "article_processor"
    MONGODB_COLLECTION: str = "articles"
    LOCK_BACKEND: str = Field("redis", pattern=r"^(redis|local)$")
    REDIS_URL: AnyUrl = Field("redis://localhost:6379/0")
    ATTEMPT_LOCK_TTL_SECONDS: PositiveInt = 900

    # Reference discovery
    SEARCH_API_URL: str = "https://www.googleapis.com/customsearch/v1"
    SEARCH_API_KEY: Optional[str] = None
    SEARCH_ENGINE_ID: Optional[str] = None
    SEARCH_TIMEOUT_SECONDS: float = 30.0

    # Reference acquisition
    REFERENCE_FETCH_TIMEOUT_SECONDS: float = 15.0
    MAX_REFERENCE_CANDIDATES: PositiveInt = 5
    MAX_REFERENCE_FETCH: PositiveInt = 2
    EXTRACTED_CONTENT_LIMIT: PositiveInt = 5000
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    # Text generation providers, tried in this order
    GENERATION_PROVIDERS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["huggingface", "openai", "anthropic"]
    )
    GENERATION_TIMEOUT_SECONDS: float = 60.0
    HF_API_KEY: Optional[str] = None
    HF_API_URL: str = "https://api-inference.huggingface.co/models"
    HF_MODEL: str = "mistralai/Mistral-7B-Instruct-v0.1"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    MAX_TOKENS: int = 1500
    TEMPERATURE: float = 0.7

    # Bulk processing
    BULK_PACING_SECONDS: float = 2.0

    # Monitoring / tracing
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[AnyUrl] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None
    OTEL_CONSOLE_EXPORT: bool = False

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("GENERATION_PROVIDERS", mode="before")
    def _split_providers(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [item.strip().lower() for item in value.split(",") if item.strip()]
        return [item.lower() for item in value or []]


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
