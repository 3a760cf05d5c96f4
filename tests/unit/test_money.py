from __future__ import annotations

from decimal import Decimal

import pytest

from minted.domain.currency_config import CurrencyConfiguration
from minted.domain.errors import (
    ExchangeRateUnavailableError,
    InvalidAmountTypeError,
    InvalidCurrencyCodeError,
    MissingCurrencyCodeError,
)
from minted.domain.exchange import VariableExchangeRates
from minted.domain.money import (
    MonetaryValue,
    assign_amount,
    convert_value,
    format_value,
)


def test_create_keeps_minor_units_and_normalizes_code() -> None:
    value = MonetaryValue.create(-123456789, " usd ")

    assert value.minor_units == -123456789
    assert value.currency_code == "USD"


@pytest.mark.parametrize("code", ["US", "USDX", "", "   ", "U D", None])
def test_create_rejects_codes_that_are_not_three_characters(code: object) -> None:
    with pytest.raises(InvalidCurrencyCodeError):
        MonetaryValue.create(100, code)  # type: ignore[arg-type]


@pytest.mark.parametrize("minor_units", [1.5, True, "100", Decimal("1")])
def test_create_rejects_non_integer_minor_units(minor_units: object) -> None:
    with pytest.raises(InvalidAmountTypeError):
        MonetaryValue.create(minor_units, "USD")  # type: ignore[arg-type]


def test_from_decimal_scales_by_currency_decimal_places(
    config: CurrencyConfiguration,
) -> None:
    assert MonetaryValue.from_decimal(Decimal("29.99"), "usd", config).minor_units == 2999
    assert MonetaryValue.from_decimal(Decimal("1500"), "JPY", config).minor_units == 1500
    assert MonetaryValue.from_decimal("1.234", "KWD", config).minor_units == 1234
    assert MonetaryValue.from_decimal(Decimal("-5.00"), "USD", config).minor_units == -500


def test_from_decimal_uses_round_half_even_by_default(
    config: CurrencyConfiguration,
) -> None:
    assert MonetaryValue.from_decimal(Decimal("0.125"), "USD", config).minor_units == 12
    assert MonetaryValue.from_decimal(Decimal("0.135"), "USD", config).minor_units == 14
    assert MonetaryValue.from_decimal(0.125, "USD", config).minor_units == 12
    assert MonetaryValue.from_decimal("1234.5", "JPY", config).minor_units == 1234


def test_from_decimal_respects_configured_rounding_mode(
    config: CurrencyConfiguration,
) -> None:
    half_up = config.with_overrides(rounding="ROUND_HALF_UP")

    assert MonetaryValue.from_decimal(Decimal("0.125"), "USD", half_up).minor_units == 13
    assert MonetaryValue.from_decimal("1234.5", "JPY", half_up).minor_units == 1235


@pytest.mark.parametrize("currency_code", [None, "", "  "])
def test_from_decimal_requires_currency_code(
    config: CurrencyConfiguration, currency_code: str | None
) -> None:
    with pytest.raises(MissingCurrencyCodeError):
        MonetaryValue.from_decimal(Decimal("10.00"), currency_code, config)


@pytest.mark.parametrize(
    "amount", [object(), True, "abc", Decimal("NaN"), "Infinity", None]
)
def test_from_decimal_rejects_unsupported_amounts(
    config: CurrencyConfiguration, amount: object
) -> None:
    with pytest.raises(InvalidAmountTypeError):
        MonetaryValue.from_decimal(amount, "USD", config)  # type: ignore[arg-type]


def test_from_existing_copies_both_fields() -> None:
    original = MonetaryValue.create(2999, "EUR")

    copy = MonetaryValue.from_existing(original)

    assert copy == original
    assert copy is not original


def test_serialization_keeps_integer_minor_units() -> None:
    value = MonetaryValue.create(2999, "USD")

    assert value.to_dict() == {"minor_units": 2999, "currency_code": "USD"}
    assert MonetaryValue.from_dict(value.to_dict()) == value
    assert (-value).minor_units == -2999


def test_major_units_are_exact_decimals(config: CurrencyConfiguration) -> None:
    assert MonetaryValue.create(1299, "USD").major_units(config) == Decimal("12.99")
    assert MonetaryValue.create(1299, "JPY").major_units(config) == Decimal("1299")


def test_convert_same_currency_needs_no_rate(config: CurrencyConfiguration) -> None:
    value = MonetaryValue.create(1299, "EUR")

    assert convert_value(value, "eur", None, config) == value


def test_convert_applies_rate_in_major_units(
    config: CurrencyConfiguration, rates: VariableExchangeRates
) -> None:
    usd = MonetaryValue.create(1299, "USD")

    assert convert_value(usd, "EUR", rates, config) == MonetaryValue.create(1104, "EUR")
    assert convert_value(MonetaryValue.create(1000, "USD"), "EUR", rates, config) == (
        MonetaryValue.create(850, "EUR")
    )
    assert convert_value(MonetaryValue.create(1000, "USD"), "JPY", rates, config) == (
        MonetaryValue.create(1500, "JPY")
    )


def test_convert_rounds_half_even_at_target_scale(
    config: CurrencyConfiguration,
) -> None:
    rates = VariableExchangeRates.from_mapping({"USD": {"GBP": "0.5"}})

    assert convert_value(MonetaryValue.create(1, "USD"), "GBP", rates, config).minor_units == 0
    assert convert_value(MonetaryValue.create(3, "USD"), "GBP", rates, config).minor_units == 2


def test_convert_without_registered_rate_fails(
    config: CurrencyConfiguration, rates: VariableExchangeRates
) -> None:
    with pytest.raises(ExchangeRateUnavailableError) as exc_info:
        convert_value(MonetaryValue.create(100, "EUR"), "USD", rates, config)

    assert exc_info.value.details == {"from": "EUR", "to": "USD"}


def test_format_uses_currency_symbol_and_grouping(
    config: CurrencyConfiguration,
) -> None:
    assert format_value(MonetaryValue.create(1299, "USD"), config) == "$12.99"
    assert format_value(MonetaryValue.create(999_999_999, "USD"), config) == (
        "$9,999,999.99"
    )
    assert format_value(MonetaryValue.create(123456, "BRL"), config) == "R$ 1.234,56"
    assert format_value(MonetaryValue.create(1500, "JPY"), config) == "¥1,500"
    assert format_value(MonetaryValue.create(1234, "KWD"), config) == "KD 1.234"


def test_format_negative_and_zero_amounts(config: CurrencyConfiguration) -> None:
    negative = format_value(MonetaryValue.create(-500, "USD"), config)

    assert "-5.00" in negative
    assert negative == "$-5.00"
    assert format_value(MonetaryValue.create(0, "USD"), config) == "$0.00"


def test_format_unknown_currency_falls_back_to_code(
    config: CurrencyConfiguration,
) -> None:
    assert format_value(MonetaryValue.create(100, "XYZ"), config) == "XYZ1.00"


def test_format_converts_before_rendering(
    config: CurrencyConfiguration, rates: VariableExchangeRates
) -> None:
    value = MonetaryValue.create(1299, "USD")

    assert format_value(value, config, "EUR", rates) == "€11.04"
    with pytest.raises(ExchangeRateUnavailableError):
        format_value(value, config, "GBP", rates)


def test_format_rule_options() -> None:
    config = CurrencyConfiguration.model_validate(
        {
            "currencies": {
                "USD": {"format": {"symbol": "$", "with_currency": True}},
                "EUR": {"format": {"symbol": "€", "display_free": "free"}},
                "GBP": {"format": {"symbol": "£", "sign_before_symbol": True}},
                "CHF": {"format": {"symbol": "Fr.", "no_cents_if_whole": True}},
            }
        }
    )

    assert format_value(MonetaryValue.create(1299, "USD"), config) == "$12.99 USD"
    assert format_value(MonetaryValue.create(0, "EUR"), config) == "free"
    assert format_value(MonetaryValue.create(-500, "GBP"), config) == "-£5.00"
    assert format_value(MonetaryValue.create(1200, "CHF"), config) == "Fr.12"
    assert format_value(MonetaryValue.create(1250, "CHF"), config) == "Fr.12.50"


def test_decimal_round_trip_through_formatting(config: CurrencyConfiguration) -> None:
    for amount, code in [("12.34", "USD"), ("0.01", "EUR"), ("987", "JPY")]:
        value = MonetaryValue.from_decimal(Decimal(amount), code, config)
        assert value.major_units(config) == Decimal(amount)
        assert format_value(value, config).endswith(amount)


def test_assign_amount_with_monetary_value_replaces_both_fields() -> None:
    current = MonetaryValue.create(100, "USD")

    assigned = assign_amount(current, MonetaryValue.create(250, "EUR"))

    assert assigned == MonetaryValue.create(250, "EUR")


def test_assign_amount_with_integer_keeps_current_currency() -> None:
    assigned = assign_amount(MonetaryValue.create(100, "JPY"), 3499)

    assert assigned == MonetaryValue.create(3499, "JPY")


def test_assign_amount_with_integer_requires_currency() -> None:
    with pytest.raises(MissingCurrencyCodeError):
        assign_amount(None, 3499)


@pytest.mark.parametrize("new_value", [True, Decimal("1.00"), 1.5, "12", None])
def test_assign_amount_rejects_other_shapes(new_value: object) -> None:
    with pytest.raises(InvalidAmountTypeError):
        assign_amount(MonetaryValue.create(100, "USD"), new_value)  # type: ignore[arg-type]


def test_convert_rounds_exact_product_once(config: CurrencyConfiguration) -> None:
    round_up = config.with_overrides(rounding="ROUND_UP")
    rates = VariableExchangeRates.from_mapping({"USD": {"EUR": "1.0000000000005"}})
    value = MonetaryValue.create(9_000_000_000_000_000_001, "USD")

    assert convert_value(value, "EUR", rates, round_up).minor_units == (
        9_000_000_000_004_500_002
    )
    assert convert_value(value, "EUR", rates, config).minor_units == (
        9_000_000_000_004_500_001
    )


def test_from_decimal_keeps_every_digit_before_rounding(
    config: CurrencyConfiguration,
) -> None:
    round_up = config.with_overrides(rounding="ROUND_UP")
    amount = Decimal("12345678901234567890123456.785")

    assert MonetaryValue.from_decimal(amount, "USD", round_up).minor_units == (
        1234567890123456789012345679
    )
    assert MonetaryValue.from_decimal(amount, "USD", config).minor_units == (
        1234567890123456789012345678
    )
