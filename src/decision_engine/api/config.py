"""Configuration for the decision engine HTTP service."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HTTP service settings loaded from environment variables."""

    # Postgres
    DATABASE_URL: str
    DATABASE_SSL: bool = True

    # Auth
    WORKER_API_KEY: str


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
