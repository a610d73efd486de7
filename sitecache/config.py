from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitecache.engine import (
    DEFAULT_MAX_ITEMS,
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_TTL_SECONDS,
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables and .env file.

    Cache limits are read once when the engine is constructed; changing them
    requires building a new engine.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache engine limits
    cache_max_size_bytes: int = Field(default=DEFAULT_MAX_SIZE_BYTES, gt=0)
    cache_default_ttl_seconds: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)
    cache_max_items: int = Field(default=DEFAULT_MAX_ITEMS, gt=0)
    cache_sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)

    # Operator surface transport and bind address
    mcp_transport: str = "stdio"
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 8000

    # Paths & logging: default is <project_root>/data so it works
    # regardless of the process working directory.
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"
    # Overrides log_level for the engine logger only (evictions, sweeps)
    cache_log_level: str | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
