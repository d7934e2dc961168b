"""Configuration models for compcat."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from compcat.schema.lock import DEFAULT_MIGRATION_LOCK_ID


class DatabaseConfig(BaseModel):
    """Catalog database connection settings."""

    url: str = Field(default="", description="PostgreSQL or SQLite URL.")
    pool_size: int = Field(default=20, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0.0)
    pool_recycle: int = Field(default=1800, ge=-1)
    echo: bool = Field(default=False)


class MigrationsConfig(BaseModel):
    """Migration runner settings."""

    alembic_ini: str = Field(default="alembic.ini", description="Optional alembic.ini path.")
    lock_id: int = Field(default=DEFAULT_MIGRATION_LOCK_ID, ge=-(2**63), le=2**63 - 1)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return normalized


class CompcatConfig(BaseSettings):
    """Root configuration model for compcat."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="COMPCAT_",
        env_nested_delimiter="__",
        extra="ignore",
    )
