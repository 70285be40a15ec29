# backend/csvsearch/db/config.py
from __future__ import annotations
import logging
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from psycopg.conninfo import make_conninfo
from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from csvsearch.core.errors import ConfigError

# Load .env before reading settings
load_dotenv()

logger = logging.getLogger("csvsearch.db.config")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    # Fallbacks are only suitable for local development
    postgres_host: str = "127.0.0.1"
    postgres_port: int = 5432
    postgres_db: str = "csvdb"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"

    csv_rows_table: str = "csv_rows"
    store_backend: Literal["postgres", "memory"] = "postgres"

    ingest_batch_size: int = Field(5000, ge=1)
    ingest_chunk_size: int = Field(64 * 1024, ge=1)
    search_default_page_size: int = Field(50, ge=1)
    search_max_page_size: int = Field(500, ge=1)

    db_pool_max_size: int = Field(20, ge=1)
    db_pool_timeout: float = Field(10.0, gt=0)
    db_pool_max_idle: float = Field(30.0, gt=0)

    def require_connection(self) -> None:
        for name in ("postgres_host", "postgres_db", "postgres_user", "postgres_password"):
            if not str(getattr(self, name)).strip():
                raise ConfigError(f"Missing required env var {name.upper()}")

    @property
    def conninfo(self) -> str:
        self.require_connection()
        return make_conninfo(
            host=self.postgres_host,
            port=self.postgres_port,
            dbname=self.postgres_db,
            user=self.postgres_user,
            password=self.postgres_password,
        )

    @property
    def masked_dsn(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:*****"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once; invalid values surface as ConfigError when first needed."""
    try:
        settings = Settings()
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]).upper() for err in e.errors())
        raise ConfigError(f"Invalid configuration: {fields}") from e
    logger.info("Store backend=%s | DSN: %s", settings.store_backend, settings.masked_dsn)
    return settings
