"""Centralized application configuration via environment variables."""

import uuid
from enum import StrEnum
from functools import lru_cache

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

SYSTEM_TENANT_ID = uuid.UUID("00000000-0000-0000-0000-000000000000")
SYSTEM_TENANT_OWNER = "system"
DEFAULT_APP_ID = "public"


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Secrets use SecretStr to prevent accidental logging.
    Database URL is assembled from individual components to match
    the official PostgreSQL Docker image environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "DEBUG"
    # --- CORS ---
    cors_allowed_origins: list[str] = []
    cors_allow_credentials: bool = False
    cors_allowed_methods: list[str] = ["GET", "POST", "PUT", "DELETE"]
    cors_allowed_headers: list[str] = [
        "Content-Type",
        "Authorization",
        "X-Tenant-Id",
        "X-Host",
    ]

    # --- PostgreSQL ---
    postgres_user: str = "tenant_access"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "tenant_access"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Assemble database URL from components.

        Uses psycopg v3 driver which supports both sync (create_engine)
        and async (create_async_engine) modes natively.
        """
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # --- Supabase (session token verification) ---
    supabase_url: str | None = None
    supabase_anon_key: SecretStr | None = None

    # --- Tenancy ---
    system_tenant_id: uuid.UUID = SYSTEM_TENANT_ID
    default_app_id: str = DEFAULT_APP_ID
    # Hosts that serve every tenant; never resolve to a single tenant.
    shared_domains: list[str] = ["watch.example.com"]
    tenant_resolve_timeout_seconds: float = 5.0

    # --- Request headers ---
    tenant_header: str = "X-Tenant-Id"
    from_domain_header: str = "X-From-Domain"
    domain_tenant_header: str = "X-Domain-Tenant-Id"
    host_override_header: str = "X-Host"
    app_id_header: str = "X-App-Id"
    tenant_user_header: str = "X-Tenant-User-Id"
    is_pro_header: str = "X-Is-Pro"

    # --- Convenience properties ---
    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton.

    Usage::

        from tenant_access.config import get_settings
        settings = get_settings()

    Or for dependency injection in FastAPI::

        @app.get("/")
        def root(settings: Settings = Depends(get_settings)):
            ...
    """
    return Settings()


settings = get_settings()
