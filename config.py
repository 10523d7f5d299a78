"""Configuration management for linkblog."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    """Application configuration."""

    # Server settings
    host: str = Field(
        default="127.0.0.1",
        description="Host to bind to"
    )

    port: int = Field(
        default=7990,
        description="Port to listen on"
    )

    # Database settings
    database_url: str = Field(
        default="linkblog.db",
        description="SQLite file path (or sqlite:///path) or a postgresql:// DSN"
    )

    # Link settings
    pretty_addr: Optional[str] = Field(
        default=None,
        description="Public base address used in feed links (defaults to http://host:port)"
    )

    # Feed settings
    feed_limit: int = Field(
        default=50,
        ge=1,
        description="Maximum number of items in the RSS feed"
    )

    feed_stale_seconds: int = Field(
        default=1800,
        ge=0,
        description="Age in seconds after which the cached RSS feed is rebuilt"
    )

    work_dir: Optional[str] = Field(
        default=None,
        description="Directory for the cached feed (a temporary directory if not set)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def listen(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def public_base_url(self) -> str:
        """Public base address for links, falling back to the listen address."""
        if self.pretty_addr:
            return self.pretty_addr.rstrip("/")
        return f"http://{self.listen}"


def load_config(**overrides) -> Config:
    """Load configuration from environment, applying explicit overrides."""
    return Config(**overrides)
