"""
Airdrop Proof Service - Configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "Airdrop Proof Service"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 10001
    # The campaign registry lives in process memory; more than one worker
    # would give each worker its own registry.
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Campaigns
    DEFAULT_TREE_ID: str = "default"
    DEFAULT_CLAIM_AMOUNT: int = Field(default=100, ge=0)
    MAX_ADDRESSES: int = Field(default=100_000, ge=1)

    # Metrics
    METRICS_ENABLED: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
