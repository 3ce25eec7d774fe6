from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_csv(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # .env in the working directory
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "tablegate"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_csv)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Gateway: URL prefix and exposed tables (comma separated in env)
    GATEWAY_PREFIX: str = "/"
    GATEWAY_TABLES: Annotated[list[str] | str, BeforeValidator(parse_csv)] = []

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    # Connection pool
    DB_CONNECT_TIMEOUT: int = 10  # seconds
    POOL_SIZE: int = 5  # idle connections kept
    POOL_MAX_CONNECTIONS: int = 20  # open connections at once
    POOL_MAX_AGE_SEC: float = 600.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database(self) -> dict[str, Any]:
        """Connection parameters handed to ``core.pool.connect``."""
        return {
            "host": self.POSTGRES_SERVER,
            "port": self.POSTGRES_PORT,
            "database": self.POSTGRES_DB,
            "username": self.POSTGRES_USER,
            "password": self.POSTGRES_PASSWORD,
            "connect_timeout": self.DB_CONNECT_TIMEOUT,
        }


settings = Settings()  # type: ignore
