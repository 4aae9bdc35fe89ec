"""Application configuration via pydantic-settings.

Values come from the environment or a local .env file. Chain, evidence store
and vintage bounds are configured here so the services never read the
environment themselves.

Usage:
    from blue_carbon_registry.config import get_settings
    settings = get_settings()
    client = create_chain_client(settings)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Blue Carbon Registry."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    cors_allow_origins: list[str] = ["*"]

    # --- Database (PostgreSQL) ---
    database_url: str = (
        "postgresql+asyncpg://bluecarbon:bluecarbon_dev"
        "@localhost:5432/blue_carbon_registry"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False
    # Apply Alembic revisions at startup on non-SQLite databases.
    db_auto_migrate: bool = False

    # --- Redis ---
    redis_url: str = "redis://localhost:6379/0"
    redis_idempotency_ttl_seconds: int = 86400  # 24 hours

    # --- Chain client ---
    # "simulated" produces placeholder hashes; "web3" talks to a real RPC node.
    chain_mode: Literal["simulated", "web3"] = "simulated"
    web3_rpc_url: str = ""
    chain_private_key: str = ""
    carbon_credit_contract: str = ""
    blockchain_network: str = "mumbai"
    chain_id: int = 80001
    chain_tx_retries: int = 3

    # --- Evidence store ---
    evidence_store_dir: str = "./evidence"
    evidence_gateway_url: str = "https://ipfs.io/ipfs/"
    evidence_max_bytes: int = 10 * 1024 * 1024
    evidence_allowed_types: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "application/pdf",
        "application/json",
        "text/plain",
    ]

    # --- Credit issuance ---
    vintage_year_min: int = 2000
    vintage_year_max: int = 2030
    default_certification_standard: str = "VCS"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
