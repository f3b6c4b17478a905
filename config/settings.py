from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Ledger store: "redis" for the shared KV store, "file" for a local JSON document
    STORE_BACKEND: Literal["redis", "file"] = "file"

    # Redis (used when STORE_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379/0"

    # File backend — single process only
    LEDGER_FILE_PATH: str = "data/ledger.json"

    # Ledger economics
    STARTING_BALANCE: float = Field(100.0, ge=0)
    MARKET_SEED: float = Field(5.0, gt=0)
    SEED_DEFAULT_MARKET: bool = False

    # Entity locks
    LOCK_WAIT_SECONDS: float = 2.0
    LOCK_LEASE_SECONDS: float = 10.0
    LOCK_RETRIES: int = Field(3, ge=1)
    LOCK_RETRY_BACKOFF_SECONDS: float = 0.05

    # App
    APP_NAME: str = "Pool Bets"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev
    LOG_LEVEL: str = "INFO"


settings = Settings()
