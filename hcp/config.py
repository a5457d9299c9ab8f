from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from functools import lru_cache
import json

from hcp.core.errors import ServerMisconfigured


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (required for the relational storage backend)
    DATABASE_URL: str = ""

    # Database Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # JWT Settings
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # App Settings
    APP_NAME: str = "HCP Certification Dashboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Storage: "sql" (relational rows), "file" (JSON file per key) or "memory"
    STORAGE_BACKEND: str = "sql"
    STORAGE_PATH: str = "./data"
    STORAGE_KEY_PREFIX: str = "hcp_"
    STORAGE_QUOTA_BYTES: Optional[int] = None  # memory backend only

    # Retention caps
    AUDIT_LOG_CAP: int = 1000
    DATASET_VERSION_CAP: int = 5

    # Gateway restricts Regional/Community admins to their assigned partner codes
    ENFORCE_PARTNER_SCOPE: bool = True

    # Billing
    DEFAULT_TAX_RATE: float = 0.0  # Percentage applied to drafted invoices

    # Seeded on startup when the admin roster is empty
    BOOTSTRAP_ADMIN_EMAIL: str = ""
    BOOTSTRAP_ADMIN_PASSWORD: str = ""
    BOOTSTRAP_ADMIN_NAME: str = "HQ Administrator"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @field_validator('STORAGE_BACKEND')
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("sql", "file", "memory"):
            raise ValueError(f"Unsupported storage backend: {v}")
        return v

    def validate_startup(self) -> None:
        """
        Check the configuration preconditions the service cannot run without.

        Raises:
            ServerMisconfigured: when the token-signing secret is missing, or the
                relational backend is selected without a connection string.
        """
        missing = []
        if not self.SECRET_KEY:
            missing.append("SECRET_KEY")
        if self.STORAGE_BACKEND == "sql" and not self.DATABASE_URL:
            missing.append("DATABASE_URL")
        if missing:
            raise ServerMisconfigured(
                f"Missing required configuration: {', '.join(missing)}"
            )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
