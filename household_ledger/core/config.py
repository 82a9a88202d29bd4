from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    DATABASE_URL: str = "sqlite+aiosqlite:///./household_ledger.db"
    SQL_ECHO: bool = False

    # Seeded for every member when income arrives and nobody has a config
    DEFAULT_ALLOWANCE_PERCENTAGE: Decimal = Field(default=Decimal("0.2"), ge=0, le=1)
    # Income dated on or after this day funds the following month
    ALLOCATION_CUTOFF_DAY: int = Field(default=22, ge=1, le=31)
    CURRENCY_SYMBOL: str = "€"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
