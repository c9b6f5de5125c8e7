# commerce_tools/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - none; every value has a usable default for local development.

    Optional:
      - DATABASE_URL (SQLite file by default, Postgres in production)
      - CHATWOOT_BASE_URL, CHATWOOT_ACCOUNT_ID, CHATWOOT_API_TOKEN
        (all three must be set, otherwise conversation labeling is disabled)
    """

    PROJECT_NAME: str = "Commerce Tools API"
    LOG_LEVEL: str = "INFO"

    # DB config
    DATABASE_URL: str = "sqlite:///./commerce.db"
    DATABASE_ECHO: bool = False

    # Chatwoot conversation labels (best-effort integration)
    CHATWOOT_BASE_URL: str | None = None
    CHATWOOT_ACCOUNT_ID: str | None = None
    CHATWOOT_API_TOKEN: str | None = None
    CHATWOOT_TIMEOUT_SECONDS: float = 3.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
