"""
Configuration and settings for the site backend.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Static site
    public_dir: str = Field(default="public")
    static_dir: str = Field(default="static")

    # Database (SQLite file unless DATABASE_URL is given)
    db_file: str = Field(default="./data/linngames.db")
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # GitHub repository metadata
    github_repo: str = Field(default="habibidani/axia")
    github_token: Optional[str] = Field(default=None)
    github_api_base: str = Field(default="https://api.github.com")
    github_cache_ttl: float = Field(default=600.0, gt=0)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def resolved_database_url(self) -> str:
        """SQLAlchemy URL for the store, derived from DB_FILE when unset."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{Path(self.db_file).expanduser()}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
