"""Service configuration via environment variables."""

import re

from pydantic import field_validator
from pydantic_settings import BaseSettings

_ROLE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


class Settings(BaseSettings):
    # Database
    database_url: str | None = None
    database_pool_size: int = 10

    # Identity provider
    identity_url: str | None = None
    identity_anon_key: str | None = None
    identity_service_key: str | None = None
    identity_jwt_secret: str | None = None
    identity_jwt_audience: str = "authenticated"
    identity_timeout_seconds: float = 10.0

    # Role assumed by row-level-security-scoped sessions ("" disables SET ROLE)
    rls_role: str = "authenticated"

    # Service
    rest_host: str = "0.0.0.0"
    rest_port: int = 8080
    forwarded_allow_ips: str = "127.0.0.1"
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v: str | None) -> str | None:
        """Hosted Postgres hands out postgres:// URLs; the engine needs asyncpg."""
        if isinstance(v, str):
            for scheme in ("postgres://", "postgresql://"):
                if v.startswith(scheme):
                    return v.replace(scheme, "postgresql+asyncpg://", 1)
        return v

    @field_validator("identity_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @field_validator("rls_role")
    @classmethod
    def role_is_identifier(cls, v: str) -> str:
        if v and not _ROLE_NAME.match(v):
            raise ValueError("rls_role must be a lowercase SQL identifier")
        return v


settings = Settings()
