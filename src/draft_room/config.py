"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Settings
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # CORS - comma-separated origins (env var: CORS_ORIGINS)
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Database path (DuckDB file) for sessions and completed drafts
    database_path: str = "data/draft_room.duckdb"

    # Base URL the join links point at (the page hosting the draft UI)
    public_base_url: str = "http://localhost:5173/draft"

    # Draft timing
    turn_seconds: int = 30
    ready_countdown_seconds: int = 5
    tick_interval_seconds: float = 1.0

    # Sync channel
    sync_queue_size: int = 256
    sync_channel_prefix: str = "lol_draft_sync"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
