from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    rabbitmq_url: Optional[str] = None
    service_name: str = "fulfillment-service"
    log_level: str = "INFO"
    cors_origins: str = "*"
    rabbitmq_prefetch_count: int = 10
    db_pool_size: int = 20
    db_max_overflow: int = 10
    outbox_poll_interval: int = 5
    outbox_batch_size: int = 100
    outbox_max_retries: int = 3
    outbox_purge_every: int = 720
    outbox_retention_hours: int = 24
    release_stock_on_delete: bool = True

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v.startswith(("postgresql", "sqlite")):
            raise ValueError("Only PostgreSQL and SQLite are supported")
        return v


settings = Settings()
