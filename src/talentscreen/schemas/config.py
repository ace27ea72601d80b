"""Pydantic configuration schema for YAML and environment input."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field, ValidationError


def _env(name: str, default: str | None = None):
    return lambda: os.environ.get(name, default)


class DatabaseConfig(BaseModel):
    url: str = Field(default_factory=_env("TALENTSCREEN_DATABASE_URL", "sqlite:///talentscreen.db"))
    echo: bool = False


class LLMConfig(BaseModel):
    api_key: str | None = Field(default_factory=_env("OPENROUTER_API_KEY"))
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "anthropic/claude-opus-4.5"
    timeout: float = 120.0
    app_url: str = Field(default_factory=_env("TALENTSCREEN_APP_URL", "http://localhost:3000"))
    app_title: str = "talentscreen"


class SearchConfig(BaseModel):
    api_key: str | None = Field(default_factory=_env("TAVILY_API_KEY"))
    search_depth: str = "basic"
    max_results: int = 5
    timeout: float = 30.0


class ScraperConfig(BaseModel):
    token: str | None = Field(default_factory=_env("APIFY_API_TOKEN"))
    actor_id: str = "2SyF0bVxmgGr8IVCZ"
    timeout: float = 300.0


class EnrichmentConfig(BaseModel):
    max_companies: int = Field(3, ge=0)
    max_workers: int = Field(3, ge=1)


class LanguageConfig(BaseModel):
    assumed_english_penalty: int = Field(20, ge=0, le=100)
    inferred_english_penalty: int = Field(10, ge=0, le=100)
    inferred_native_penalty: int = Field(10, ge=0, le=100)
    min_profile_text_length: int = Field(50, ge=0)


class BatchConfig(BaseModel):
    page_size: int = Field(2, ge=1)
    max_workers: int = Field(1, ge=1)
    lease_seconds: int = Field(600, ge=1)


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    language: LanguageConfig = Field(default_factory=LanguageConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump(mode="python")


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
