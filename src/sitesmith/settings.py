"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the Sitesmith REST API server.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"

    # REST API
    api_server_host: str = "localhost"
    api_server_port: int = 8000
    port: int | None = None  # platform-injected PORT takes precedence over api_server_port

    @property
    def effective_port(self) -> int:
        """Return the port to listen on (platform PORT takes precedence)."""
        return self.port if self.port is not None else self.api_server_port

    # Upstream generative service
    upstream_api_key: SecretStr | None = None
    upstream_url: str = "https://agent-prod.studio.lyzr.ai/v3/inference/chat/"
    upstream_agent_id: str = "689057a385a7ba76147f7820"
    upstream_user_id: str = "sitesmith"
    upstream_timeout_seconds: float = 25.0  # under the 30 s platform request deadline

    # Storage
    database_url: str | None = None  # None keeps projects in memory

    # Preview
    preview_quiet_interval_ms: int = 300
