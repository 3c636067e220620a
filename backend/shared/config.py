"""
Centralized configuration for the Syr identity backend.

All settings are loaded from environment variables (prefixed with SYR_)
with sensible defaults. Secrets are held as SecretStr so they never end
up in logs or reprs.
"""

from functools import lru_cache
from typing import Literal
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SYR_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Syr Identity API"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Persistence
    store_backend: Literal["supabase", "memory"] = "supabase"
    supabase_url: str = ""
    supabase_service_role_key: SecretStr = SecretStr("")
    supabase_db_url: str = ""  # direct Postgres URL, migrations only

    # Bearer tokens
    jwt_secret: SecretStr = SecretStr("")
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "syr"
    jwt_audience: str = "syr-api"
    jwt_expires_in: int = 60 * 60 * 24 * 7  # seconds

    # Sessions
    session_ttl_days: int = 7
    session_sweep_interval_seconds: int = 3600
    session_cookie_name: str = "session"

    # Decentralized identifiers
    did_web_domain: str = "localhost:5173"

    # Argon2id cost (OWASP baseline: 64 MiB, 3 passes, 4 lanes)
    argon2_memory_cost: int = 65536  # KiB
    argon2_time_cost: int = 3
    argon2_parallelism: int = 4

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
