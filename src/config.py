"""Configuration management for DOM snapshot testing."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SnapshotSettings(BaseSettings):
    """Snapshot service settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Store directories
    baseline_dir: str = Field("./snapshots/baseline", description="Directory for baseline snapshots")
    actual_dir: str = Field("./snapshots/actual", description="Directory for actual snapshots")
    diff_dir: str = Field("./snapshots/diff", description="Directory for diffs and saved actual payloads")

    # Lifecycle
    update_baseline: bool = Field(False, description="Overwrite baselines instead of comparing")
    mode: Literal["dom", "styles", "full"] = Field("full", description="What captures serialize")
    storage: Literal["hash", "full", "hash+diff"] = Field("hash", description="What gets persisted alongside the hash")
    auto_write: bool = Field(True, description="Persist captures to the actual directory")
    fail_on_mismatch: bool = Field(False, description="Raise when a comparison mismatches")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Render logs as JSON")


def get_settings() -> SnapshotSettings:
    """Get snapshot settings."""
    return SnapshotSettings()
