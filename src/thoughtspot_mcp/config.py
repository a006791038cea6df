"""Configuration management for thoughtspot-mcp.

Loads settings from environment variables or a .env file with a clear
priority chain.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from thoughtspot_mcp.exceptions import ConfigurationError


class ThoughtSpotSettings(BaseSettings):
    """Application settings loaded from environment variables and .env files.

    Priority (highest to lowest):
      1. Explicit constructor arguments
      2. Environment variables (TS_INSTANCE_URL, TS_ACCESS_TOKEN, etc.)
      3. .env file in current directory
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ThoughtSpot credentials
    ts_instance_url: Annotated[str, Field(description="ThoughtSpot instance URL")] = ""
    ts_access_token: Annotated[
        str, Field(description="Bearer token for the ThoughtSpot REST API", repr=False)
    ] = ""
    ts_client_name: Annotated[
        str, Field(description="Name of the MCP client, reported to usage trackers")
    ] = "thoughtspot-mcp"

    ts_log_level: Annotated[str, Field(description="Root log level")] = "INFO"

    # Spotter pipeline tuning
    ts_data_row_limit: Annotated[
        int, Field(ge=1, description="Max CSV lines (header included) kept per answer")
    ] = 100
    ts_max_decomposed_queries: Annotated[
        int, Field(ge=1, description="Max sub-questions per decomposition")
    ] = 5
    ts_datasource_page_size: Annotated[
        int, Field(ge=1, description="Page size for data source discovery")
    ] = 2000
    ts_liveboard_tile_size: Annotated[
        str, Field(description="Layout tile size for liveboard visualizations")
    ] = "MEDIUM_SMALL"

    ts_request_timeout: Annotated[
        float, Field(gt=0, description="Per-request timeout in seconds")
    ] = 60.0

    @field_validator("ts_instance_url")
    @classmethod
    def normalize_instance_url(cls, v: str) -> str:
        if not v:
            return v
        v = v.rstrip("/")
        if not v.startswith("http"):
            v = f"https://{v}"
        return v

    @field_validator("ts_log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def api_configured(self) -> bool:
        return bool(self.ts_access_token and self.ts_instance_url)

    def require_api(self) -> None:
        """Raise if API credentials are not configured."""
        if not self.ts_instance_url:
            raise ConfigurationError(
                "TS_INSTANCE_URL is not set. Set it in .env or as an environment variable."
            )
        if not self.ts_access_token:
            raise ConfigurationError(
                "TS_ACCESS_TOKEN is not set. Set it in .env or as an environment variable."
            )


# Singleton-ish: lazily loaded on first access
_settings: ThoughtSpotSettings | None = None


def get_settings(**overrides: str) -> ThoughtSpotSettings:
    """Get or create the application settings singleton."""
    global _settings
    if _settings is None or overrides:
        _settings = ThoughtSpotSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
