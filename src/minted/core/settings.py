"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from minted.domain.currency_config import (
    CurrencyConfiguration,
    load_currency_configuration,
)
from minted.domain.exchange import VariableExchangeRates, load_exchange_rates


class Settings(BaseSettings):
    """Runtime settings for money configuration and persistence."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+pysqlite:///./minted.sqlite3",
        alias="DATABASE_URL",
    )
    currency_catalog_path: Path | None = Field(
        default=None,
        alias="MINTED_CURRENCY_CATALOG",
    )
    exchange_rates_path: Path | None = Field(
        default=None,
        alias="MINTED_EXCHANGE_RATES",
    )
    default_decimal_count: int | None = Field(
        default=None,
        alias="MINTED_DEFAULT_DECIMAL_COUNT",
        ge=0,
    )
    rounding_mode: str | None = Field(default=None, alias="MINTED_ROUNDING_MODE")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance for the current process."""

    return Settings()


def build_currency_configuration(settings: Settings) -> CurrencyConfiguration:
    """Resolve the currency catalog and apply environment overrides."""

    if settings.currency_catalog_path is not None:
        config = load_currency_configuration(settings.currency_catalog_path)
    else:
        config = CurrencyConfiguration.default()

    overrides: dict[str, object] = {}
    if settings.default_decimal_count is not None:
        overrides["default_decimal_count"] = settings.default_decimal_count
    if settings.rounding_mode is not None:
        overrides["rounding"] = settings.rounding_mode
    if overrides:
        config = config.with_overrides(**overrides)
    return config


def build_exchange_rates(settings: Settings) -> VariableExchangeRates:
    """Load the configured rate table, or an empty one."""

    if settings.exchange_rates_path is None:
        return VariableExchangeRates()
    return load_exchange_rates(settings.exchange_rates_path)
