"""Configuration management using Pydantic Settings.

This module provides centralized, type-safe configuration for Smart Select.
Configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valid range for the numeric depth limit. "Unlimited" is expressed with
# AnalysisConfig.unlimited_depth, never with a magic number.
MIN_DEPTH = 0
MAX_DEPTH = 20

DEFAULT_SOURCE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"]


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(env_prefix="APP_")

    name: str = "smart-select"
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


class APISettings(BaseSettings):
    """API server settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 1
    reload: bool = False


class AnalysisConfig(BaseSettings):
    """Options controlling one dependency analysis.

    Mirrors the settings store of the host editor: every request may carry
    its own copy, and the environment provides the defaults.
    """

    model_config = SettingsConfigDict(env_prefix="SMART_SELECT_", extra="ignore")

    enabled: bool = False
    max_depth: int = Field(default=5, ge=MIN_DEPTH, le=MAX_DEPTH)
    unlimited_depth: bool = Field(
        default=False,
        description="Ignore max_depth and expand until the graph is exhausted",
    )
    include_tests: bool = True
    test_file_patterns: list[str] = Field(default_factory=list)
    exclusion_patterns: list[str] = Field(default_factory=list)
    exclude_third_party: bool = True
    respect_ignore_file: bool = True
    source_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS)
    )

    @field_validator("source_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Ensure every extension carries its leading dot."""
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]

    @property
    def effective_max_depth(self) -> int | None:
        """Depth bound for traversal, None when unlimited."""
        if self.unlimited_depth:
            return None
        return self.max_depth


class PerformanceSettings(BaseSettings):
    """Performance tuning settings."""

    model_config = SettingsConfigDict(env_prefix="")

    analysis_max_nodes: int = Field(default=2000, ge=1)
    analysis_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    progress_interval_seconds: float = Field(default=1.0, gt=0.0)
    import_cache_max_size: int = Field(default=2000, ge=10)


class WorkspaceSettings(BaseSettings):
    """Workspace location settings."""

    model_config = SettingsConfigDict(env_prefix="WORKSPACE_")

    root: Path = Field(default_factory=Path.cwd)
    path_mapping_file: str = "tsconfig.json"
    use_global_excludes: bool = Field(
        default=True,
        description="Also honour the global git excludes file (core.excludesFile)",
    )


class Settings(BaseSettings):
    """Main settings container aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    api: APISettings = Field(default_factory=APISettings)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
