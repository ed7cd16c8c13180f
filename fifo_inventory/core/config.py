# fifo_inventory/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Times a public operation is re-run after a lost update
    CONFLICT_RETRIES: int = 1

    # Rate limits for ingestion endpoints
    ORDER_RATE_LIMIT: str = "60/minute"
    IMPORT_RATE_LIMIT: str = "10/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
