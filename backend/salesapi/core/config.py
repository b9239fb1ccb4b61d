"""
Application settings (pydantic-settings).

Every value can be overridden from the environment or a ``.env`` file.
DATABASE_URL has no default: the service refuses to start without it.
"""

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    if isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "salesapi"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    HOST: str = "0.0.0.0"
    PORT: int = 3003
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Backing store
    DATABASE_URL: str = Field(..., min_length=1)
    DB_CONNECT_TIMEOUT: int = Field(default=10, ge=1)
    DB_STATEMENT_TIMEOUT: float | None = Field(
        default=None,
        gt=0,
        description="Server-side statement_timeout in seconds; None = no limit.",
    )

    # Connection pool
    DB_POOL_MAX_SIZE: int = Field(default=100, ge=1)
    DB_POOL_MIN_IDLE: int = Field(default=20, ge=0)
    DB_POOL_ACQUIRE_TIMEOUT: float = Field(default=5.0, ge=0)
    DB_POOL_IDLE_TIMEOUT: float = Field(default=300.0, ge=0)
    DB_POOL_MAX_LIFETIME: float = Field(default=1800.0, ge=0)
    DB_POOL_REAP_INTERVAL: float = Field(default=30.0, gt=0)

    # /stats
    STATS_WARMUP_DELAY: float = Field(default=0.2, ge=0)


settings = Settings()  # type: ignore
