"""Centralized configuration for spec-search using Pydantic Settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spec_search.options import SearchOptions


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``SPEC_SEARCH_*`` environment variables.

    Only defaults live here; per-call overrides go through ``SearchOptions``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPEC_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Search defaults
    max_matches_per_spec: int = Field(default=5, ge=1, description="Default cap on matches shown per document")
    context_length: int = Field(default=80, ge=1, description="Characters of context around content hits")
    match_mode: Literal["all", "any"] = Field(default="all", description="Field-level term matching mode")
    smart_context: bool = Field(default=True, description="Snap excerpts to sentence boundaries")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Telemetry
    service_name: str = Field(default="spec-search", description="service.name resource attribute")
    tracing_enabled: bool = Field(default=False, description="Install an SDK tracer provider on bootstrap")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus/OTel search metrics")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return normalized.lower()

    def to_search_options(self) -> SearchOptions:
        """Default options for engines built from these settings."""
        return SearchOptions(
            max_matches_per_spec=self.max_matches_per_spec,
            context_length=self.context_length,
            match_mode=self.match_mode,
            smart_context=self.smart_context,
        )


def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
