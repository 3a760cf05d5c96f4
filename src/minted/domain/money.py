"""Minor-unit monetary values with currency-aware conversion and formatting."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

from minted.domain.currency_config import CurrencyConfiguration, FormatRule
from minted.domain.errors import (
    ExchangeRateUnavailableError,
    InvalidAmountTypeError,
    MissingCurrencyCodeError,
    compose_error_message,
)
from minted.domain.exchange import ExchangeRateTable
from minted.domain.units import (
    exact_precision,
    minor_to_major,
    normalize_currency_code,
)


@dataclass(frozen=True, slots=True)
class MonetaryValue:
    """Exact amount stored as integer minor units plus an ISO currency code."""

    minor_units: int
    currency_code: str

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise InvalidAmountTypeError(
                message=compose_error_message(
                    cause="Minor units must be an integer.",
                    action="Pass the amount in the currency's smallest unit.",
                ),
                details={"minor_units": repr(self.minor_units)},
            )
        object.__setattr__(
            self, "currency_code", normalize_currency_code(self.currency_code)
        )

    @classmethod
    def create(cls, minor_units: int, currency_code: str) -> MonetaryValue:
        """Build a value from minor units and a currency code."""
        return cls(minor_units=minor_units, currency_code=currency_code)

    @classmethod
    def from_decimal(
        cls,
        amount: Decimal | int | float | str,
        currency_code: str | None,
        config: CurrencyConfiguration,
    ) -> MonetaryValue:
        """Scale a major-unit amount into minor units for the given currency.

        The currency is required because the scale depends on its decimal
        places. Rounding follows `config.rounding`.
        """
        if currency_code is None or not str(currency_code).strip():
            raise MissingCurrencyCodeError(details={"amount": str(amount)})

        iso = normalize_currency_code(currency_code)
        major = _to_decimal(amount)
        with localcontext(prec=exact_precision(major)):
            scaled = major.scaleb(config.decimal_places(iso))
            minor = int(scaled.to_integral_value(rounding=config.rounding))
        return cls(minor_units=minor, currency_code=iso)

    @classmethod
    def from_existing(cls, other: MonetaryValue) -> MonetaryValue:
        """Copy another value, e.g. when moving it onto a new coin."""
        return cls(minor_units=other.minor_units, currency_code=other.currency_code)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MonetaryValue:
        """Deserialize {"minor_units": int, "currency_code": str}."""
        return cls(minor_units=data["minor_units"], currency_code=data["currency_code"])

    def major_units(self, config: CurrencyConfiguration) -> Decimal:
        """Return the exact major-unit amount for this value."""
        return minor_to_major(
            self.minor_units, config.decimal_places(self.currency_code)
        )

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_dict(self) -> dict[str, Any]:
        return {"minor_units": self.minor_units, "currency_code": self.currency_code}

    def __neg__(self) -> MonetaryValue:
        return MonetaryValue(
            minor_units=-self.minor_units, currency_code=self.currency_code
        )


def _to_decimal(amount: object) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmountTypeError(details={"amount": repr(amount)})
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise InvalidAmountTypeError(details={"amount": repr(amount)}) from exc
    else:
        raise InvalidAmountTypeError(details={"amount": repr(amount)})

    if not value.is_finite():
        raise InvalidAmountTypeError(
            message=compose_error_message(
                cause="Amount must be a finite number.",
                action="Send a decimal amount such as 29.99.",
            ),
            details={"amount": str(amount)},
        )
    return value


def convert_value(
    value: MonetaryValue,
    to_currency_code: str,
    rates: ExchangeRateTable | None,
    config: CurrencyConfiguration,
) -> MonetaryValue:
    """Convert into another currency, re-quantizing at the target's scale."""

    target = normalize_currency_code(to_currency_code)
    if target == value.currency_code:
        return MonetaryValue.from_existing(value)

    rate = rates.rate(value.currency_code, target) if rates is not None else None
    if rate is None:
        raise ExchangeRateUnavailableError(
            message=compose_error_message(
                cause=(
                    f"No exchange rate from {value.currency_code} to {target} "
                    "is registered."
                ),
                action="Add the rate to the exchange rate table and retry.",
            ),
            details={"from": value.currency_code, "to": target},
        )

    source = value.major_units(config)
    factor = Decimal(rate)
    # Rounded once, at the target scale.
    with localcontext(prec=exact_precision(source, factor)):
        scaled = (source * factor).scaleb(config.decimal_places(target))
        minor = int(scaled.to_integral_value(rounding=config.rounding))
    return MonetaryValue(minor_units=minor, currency_code=target)


def format_value(
    value: MonetaryValue,
    config: CurrencyConfiguration,
    to_currency_code: str | None = None,
    rates: ExchangeRateTable | None = None,
) -> str:
    """Render a value with its currency's symbol and separators.

    When `to_currency_code` names another currency the value is converted first.
    """
    if to_currency_code is not None:
        value = convert_value(value, to_currency_code, rates, config)

    rule = config.symbol_and_format(value.currency_code)
    if value.is_zero() and rule.display_free is not None:
        return rule.display_free

    number = _render_number(
        abs(value.minor_units), config.decimal_places(value.currency_code), rule
    )
    sign = "-" if value.is_negative() else ""
    if not rule.sign_before_symbol:
        number = f"{sign}{number}"

    rendered = rule.template.replace("%u", rule.symbol or "").replace("%n", number)
    if rule.sign_before_symbol:
        rendered = f"{sign}{rendered}"
    if rule.with_currency:
        rendered = f"{rendered} {value.currency_code}"
    return rendered


def _render_number(magnitude: int, decimals: int, rule: FormatRule) -> str:
    whole, fraction = divmod(magnitude, 10**decimals)
    grouped = f"{whole:,}".replace(",", rule.thousands_separator)
    if decimals == 0 or (rule.no_cents_if_whole and fraction == 0):
        return grouped
    return f"{grouped}{rule.decimal_mark}{fraction:0{decimals}d}"


def assign_amount(
    current: MonetaryValue | None, new_value: MonetaryValue | int
) -> MonetaryValue:
    """Return the value produced by assigning `new_value` onto `current`.

    Another MonetaryValue replaces both fields. A raw integer replaces only the
    minor units and therefore needs a current currency.
    """
    if isinstance(new_value, MonetaryValue):
        return MonetaryValue.from_existing(new_value)

    if isinstance(new_value, int) and not isinstance(new_value, bool):
        if current is None:
            raise MissingCurrencyCodeError(
                message=compose_error_message(
                    cause="Integer amount assigned before a currency was set.",
                    action="Assign a MonetaryValue or set currency_code first.",
                ),
                details={"minor_units": new_value},
            )
        return MonetaryValue(minor_units=new_value, currency_code=current.currency_code)

    raise InvalidAmountTypeError(
        message=compose_error_message(
            cause=f"Cannot assign {type(new_value).__name__} as a coin amount.",
            action="Assign a MonetaryValue or integer minor units.",
        ),
        details={"amount": repr(new_value)},
    )
