from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "dbsync"
    app_env: str = "local"
    log_level: str = "INFO"

    database_url: str | None = None
    scripts_dir: Path = Field(default_factory=lambda: Path("."))
    script_glob: str = "*.sql"
    migrations_table: str = "dbsync_migrations"
    tracked: bool = True

    @field_validator("migrations_table")
    @classmethod
    def _validate_migrations_table(cls, value: str) -> str:
        if not _TABLE_NAME.match(value):
            raise ValueError(f"Invalid migrations table name: {value!r}")
        return value

    @property
    def psycopg_dsn(self) -> str | None:
        if self.database_url is None:
            return None
        return self.database_url.replace("+psycopg", "")

    @property
    def uses_tracking_table(self) -> bool:
        return self.tracked and self.database_url is not None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
