import os
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _build_default_database_url() -> str:
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "audit_trail")
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


# sync driver -> async driver used by the AsyncSession engine
_ASYNC_DRIVERS = {
    "postgresql+psycopg2": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite+pysqlite": "sqlite+aiosqlite",
    "sqlite": "sqlite+aiosqlite",
}


def derive_async_database_url(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{_ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    PROJECT_NAME: str = "Audit Trail API"
    API_V1_STR: str = "/api/v1"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    # level of the audit recorder logger; falls back to LOG_LEVEL
    AUDIT_LOG_LEVEL: Optional[str] = None
    SQL_LOG_LEVEL: str = "WARNING"

    DATABASE_URL: str = Field(default_factory=_build_default_database_url)
    ASYNC_DATABASE_URL: Optional[str] = None

    AUDIT_ENABLED: bool = True
    # entity type names (mapped class names) that never produce audit records
    AUDIT_EXCLUDED_ENTITIES: Annotated[List[str], NoDecode] = Field(default_factory=list)

    @field_validator("AUDIT_EXCLUDED_ENTITIES", mode="before")
    @classmethod
    def _split_excluded_entities(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @property
    def async_database_url(self) -> str:
        return self.ASYNC_DATABASE_URL or derive_async_database_url(self.DATABASE_URL)


settings = Settings()
