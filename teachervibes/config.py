"""
Configuration management for TeacherVibes.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ARTIFACT_URL_PREFIXES = (
    "https://claude.ai/public/artifacts/,https://claude.site/artifacts/"
)


def _parse_prefixes(raw: str) -> List[str]:
    """
    Parse a comma-separated list of URL prefixes.

    Examples:
        "https://a/,https://b/" -> ["https://a/", "https://b/"]
        "  https://a/ , " -> ["https://a/"]
        "" -> []
    """
    if not raw or not raw.strip():
        return []

    prefixes = [prefix.strip() for prefix in raw.split(",")]
    return [p for p in prefixes if p]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = Field(default="TeacherVibes")
    debug: bool = Field(default=False)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=1)

    # Database
    database_url: str = Field(default="sqlite:///./teachervibes.db")

    # Object storage
    storage_root: str = Field(default="./storage")
    public_base_url: str = Field(default="http://localhost:8000/storage")
    screenshot_bucket: str = Field(default="artifact-screenshots")

    # Identity
    session_ttl_days: int = Field(default=7)

    # Logging
    log_level: str = Field(default="INFO")

    # Submission policy
    allowed_artifact_url_prefixes: str = Field(
        default=DEFAULT_ARTIFACT_URL_PREFIXES,
        description="Comma-separated list of accepted artifact URL prefixes.",
    )

    @property
    def artifact_url_prefixes(self) -> List[str]:
        return _parse_prefixes(self.allowed_artifact_url_prefixes)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
