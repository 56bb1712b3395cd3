"""Settings — every tunable of the Crate API, read from the environment.

Invariants:
    - One Settings instance per process (get_settings is lru_cached); tests patch
      attributes on that instance rather than building new ones
    - DATABASE_URL always ends up with an async driver
    - entities_default_limit never exceeds entities_max_limit

Design Decisions:
    - pydantic-settings: env vars and an optional .env file, validated on load
    - Crate sync can be switched off globally (CRATE_SYNC_ENABLED=false) for
      deployments that only use the entity store
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    database_url: str = "postgresql+asyncpg://crate:crate@db:5432/crate"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_echo: bool = False

    # Crate write-back
    crate_sync_enabled: bool = True
    crate_file_name: str = "ro-crate-metadata.json"

    # GET /entity paging
    entities_default_limit: int = 10
    entities_max_limit: int = 100

    cors_origins: list[str] = ["http://localhost:8080"]

    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """postgresql:// (as issued by most hosts) -> postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return "postgresql+asyncpg://" + v[len("postgresql://"):]
        return v

    @model_validator(mode="after")
    def check_entity_limits(self) -> "Settings":
        if self.entities_max_limit < 1:
            raise ValueError("entities_max_limit must be >= 1")
        if not 1 <= self.entities_default_limit <= self.entities_max_limit:
            raise ValueError(
                "entities_default_limit must be between 1 and entities_max_limit",
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
