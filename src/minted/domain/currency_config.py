"""Per-currency decimal places, rounding and formatting rules."""

from __future__ import annotations

import decimal
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from minted.domain.errors import InvalidConfigurationError, compose_error_message
from minted.domain.units import clamp_decimal_places

ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_CEILING,
        decimal.ROUND_DOWN,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_UP,
        decimal.ROUND_05UP,
    }
)


class FormatRule(BaseModel):
    """How a currency amount is rendered for display."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    symbol: str | None = None
    template: str = "%u%n"
    thousands_separator: str = ","
    decimal_mark: str = "."
    with_currency: bool = False
    no_cents_if_whole: bool = False
    display_free: str | None = None
    sign_before_symbol: bool = False


class FormatOverrides(BaseModel):
    """Subset of FormatRule fields a catalog entry may replace."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    symbol: str | None = None
    template: str | None = None
    thousands_separator: str | None = None
    decimal_mark: str | None = None
    with_currency: bool | None = None
    no_cents_if_whole: bool | None = None
    display_free: str | None = None
    sign_before_symbol: bool | None = None


class CurrencyEntry(BaseModel):
    """Catalog entry overriding defaults for one currency."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    decimal_count: int | None = None
    format: FormatOverrides = Field(default_factory=FormatOverrides)


class CurrencyConfiguration(BaseModel):
    """Immutable money configuration passed explicitly into money operations."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_decimal_count: int = 2
    rounding: str = decimal.ROUND_HALF_EVEN
    default_format: FormatRule = Field(default_factory=FormatRule)
    currencies: dict[str, CurrencyEntry] = Field(default_factory=dict)

    @field_validator("rounding")
    @classmethod
    def _validate_rounding(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ROUNDING_MODES:
            raise ValueError(f"Unsupported rounding mode: {value}")
        return normalized

    @field_validator("currencies")
    @classmethod
    def _normalize_codes(
        cls, value: dict[str, CurrencyEntry]
    ) -> dict[str, CurrencyEntry]:
        return {code.strip().upper(): entry for code, entry in value.items()}

    @classmethod
    def default(cls) -> CurrencyConfiguration:
        """Return configuration backed by the built-in currency catalog."""

        return cls.model_validate(DEFAULT_CATALOG)

    def decimal_places(self, currency_code: str) -> int:
        entry = self.currencies.get(currency_code.strip().upper())
        if entry is not None and entry.decimal_count is not None:
            return clamp_decimal_places(entry.decimal_count)
        return clamp_decimal_places(self.default_decimal_count)

    def symbol_and_format(self, currency_code: str) -> FormatRule:
        code = currency_code.strip().upper()
        entry = self.currencies.get(code)
        payload = self.default_format.model_dump()
        if entry is not None:
            payload.update(entry.format.model_dump(exclude_unset=True))
        if payload.get("symbol") is None:
            payload["symbol"] = code
        try:
            return FormatRule.model_validate(payload)
        except ValidationError as exc:
            raise InvalidConfigurationError(
                message=compose_error_message(
                    cause=f"Format rule for {code} is invalid.",
                    action="Fix the currency catalog format overrides.",
                ),
                details={"currency_code": code, "error": str(exc)},
            ) from exc

    def with_overrides(self, **changes: Any) -> CurrencyConfiguration:
        """Return a validated copy with top-level settings replaced."""

        payload = self.model_dump(exclude_unset=True)
        payload.update(changes)
        try:
            return CurrencyConfiguration.model_validate(payload)
        except ValidationError as exc:
            raise InvalidConfigurationError(
                details={"overrides": sorted(changes), "error": str(exc)}
            ) from exc


DEFAULT_CATALOG: dict[str, Any] = {
    "default_decimal_count": 2,
    "rounding": decimal.ROUND_HALF_EVEN,
    "currencies": {
        "USD": {"format": {"symbol": "$"}},
        "EUR": {"format": {"symbol": "€"}},
        "GBP": {"format": {"symbol": "£"}},
        "JPY": {"decimal_count": 0, "format": {"symbol": "¥"}},
        "CHF": {"format": {"symbol": "CHF ", "thousands_separator": "'"}},
        "BRL": {
            "format": {
                "symbol": "R$ ",
                "thousands_separator": ".",
                "decimal_mark": ",",
            }
        },
        "KWD": {"decimal_count": 3, "format": {"symbol": "KD "}},
        "BTC": {"decimal_count": 8, "format": {"symbol": "₿"}},
    },
}


def load_currency_configuration(path: Path) -> CurrencyConfiguration:
    """Read a JSON currency catalog from disk."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return CurrencyConfiguration.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise InvalidConfigurationError(
            message=compose_error_message(
                cause=f"Currency catalog {path} could not be loaded.",
                action="Fix the catalog JSON and reload the configuration.",
            ),
            details={"path": str(path), "error": str(exc)},
        ) from exc
