"""Exchange rate tables consumed by money conversion."""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from threading import Lock
from typing import Protocol

from minted.domain.errors import (
    InvalidConfigurationError,
    InvalidRequestError,
    compose_error_message,
)
from minted.domain.units import normalize_currency_code


class ExchangeRateTable(Protocol):
    """Read-only lookup of multiplicative conversion rates."""

    def rate(self, from_code: str, to_code: str) -> Decimal | None: ...


class VariableExchangeRates:
    """In-memory rate table filled by the caller."""

    def __init__(self) -> None:
        self._rates: dict[tuple[str, str], Decimal] = {}
        self._lock = Lock()

    @classmethod
    def from_mapping(
        cls, rates: Mapping[str, Mapping[str, object]]
    ) -> VariableExchangeRates:
        """Build a table from {"USD": {"EUR": "0.85"}} shaped data."""

        table = cls()
        for from_code, targets in rates.items():
            for to_code, value in targets.items():
                table.add_rate(from_code, to_code, value)
        return table

    def add_rate(self, from_code: str, to_code: str, value: object) -> Decimal:
        source = normalize_currency_code(from_code)
        target = normalize_currency_code(to_code)
        rate = _to_rate(value)
        with self._lock:
            self._rates[(source, target)] = rate
        return rate

    def rate(self, from_code: str, to_code: str) -> Decimal | None:
        key = (from_code.strip().upper(), to_code.strip().upper())
        with self._lock:
            return self._rates.get(key)

    def clear(self) -> None:
        with self._lock:
            self._rates.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rates)


def _to_rate(value: object) -> Decimal:
    if isinstance(value, bool):
        raise InvalidRequestError(details={"rate": value})
    raw = str(value) if isinstance(value, (float, int)) else value
    try:
        rate = Decimal(raw)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidRequestError(
            message=compose_error_message(
                cause=f"Exchange rate {value!r} is not a number.",
                action="Provide the rate as a positive decimal.",
            ),
            details={"rate": str(value)},
        ) from exc
    if not rate.is_finite() or rate <= 0:
        raise InvalidRequestError(
            message=compose_error_message(
                cause=f"Exchange rate {value!r} must be a positive finite number.",
                action="Provide the rate as a positive decimal.",
            ),
            details={"rate": str(value)},
        )
    return rate


def load_exchange_rates(path: Path) -> VariableExchangeRates:
    """Read a JSON rate table shaped as {"USD": {"EUR": "0.85"}}."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidConfigurationError(
            message=compose_error_message(
                cause=f"Exchange rate file {path} could not be read.",
                action="Fix the rate table JSON and retry.",
            ),
            details={"path": str(path), "error": str(exc)},
        ) from exc
    if not isinstance(payload, dict) or not all(
        isinstance(targets, dict) for targets in payload.values()
    ):
        raise InvalidConfigurationError(
            message=compose_error_message(
                cause=f"Exchange rate file {path} is not a nested object.",
                action='Use the shape {"USD": {"EUR": "0.85"}}.',
            ),
            details={"path": str(path)},
        )
    return VariableExchangeRates.from_mapping(payload)
