"""Configuration management for the ulb updater."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ulb_updater.constants import GITHUB_API_BASE


class Settings(BaseSettings):
    """Updater settings loaded from ``ULB_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ULB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub
    github_repo: str = Field(
        default="michal92299/Universal-Live-Builder",
        description="owner/name of the repository publishing ulb releases",
    )
    github_token: SecretStr | None = Field(
        default=None, description="Optional token to lift API rate limits"
    )

    # Install payload
    installer_url: str = Field(
        default=(
            "https://raw.githubusercontent.com/michal92299/Universal-Live-Builder/main/install.sh"
        ),
        description="Raw URL of the install script executed by the updater",
    )
    binary_name: str = Field(default="ulb", description="Name of the managed executable")
    release_tag: str = Field(
        default="v0.1.0", description="Release tag the placement payload downloads"
    )

    # Network
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    # Behaviour when the latest release cannot be determined
    unknown_remote_policy: Literal["update", "abort"] = Field(
        default="update",
        description="'update' installs anyway, 'abort' stops with a version-check failure",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="WARNING", description="Logging level")
    log_to_file: bool = Field(default=False, description="Also write logs to log_dir")
    log_dir: Path = Field(default=Path("/tmp/.ulb/logs"), description="Log file directory")
    log_file_max_bytes: int = Field(default=1_048_576, description="Rotate log file at this size")
    log_file_backup_count: int = Field(default=3, description="Rotated log files to keep")

    @field_validator("github_repo")
    @classmethod
    def _validate_repo(cls, value: str) -> str:
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError("github_repo must look like 'owner/name'")
        return f"{owner}/{name}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def log_file_path(self) -> Path:
        """Path of the rotating updater log file."""
        return self.log_dir / "ulb-update.log"

    @property
    def api_url(self) -> str:
        """Latest-release endpoint for the configured repository."""
        return f"{GITHUB_API_BASE}/repos/{self.github_repo}/releases/latest"

    @property
    def binary_url(self) -> str:
        """Download URL of the release artifact fetched by the placement payload."""
        return (
            f"https://github.com/{self.github_repo}/releases/download/"
            f"{self.release_tag}/{self.binary_name}"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
