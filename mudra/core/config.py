"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here, with no scattered magic strings.
"""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_enabled: Turn request throttling on or off.
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for ledger-mutating endpoints.
        cors_origins: Frontend origins allowed to call the API.
        starting_wallet_balance: Virtual balance credited at registration.
        wallet_currency: Currency code shown on every wallet.
        ledger_max_attempts: How many times a buy/sell is attempted
            before a version conflict is reported as an error.
        seed_catalog_on_startup: Insert the bond catalog when the app boots.

    Database settings: ``database_url`` wins when set, otherwise a
    PostgreSQL DSN is assembled from the postgres_* values.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "Mudra"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"
    rate_limit_heavy: str = "30/minute"
    cors_origins: list[str] = ["http://localhost:3000"]

    starting_wallet_balance: Decimal = Decimal("100000.00")
    wallet_currency: str = "INR"
    ledger_max_attempts: int = 3
    seed_catalog_on_startup: bool = False

    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "mudra"

    def get_database_url(self) -> str:
        """Return the effective database URL.

        Priority:
        1. Explicit `DATABASE_URL` (any SQLAlchemy URL, e.g. sqlite for local runs)
        2. Build a PostgreSQL DSN from postgres_* values (Docker Compose or local setups)
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
