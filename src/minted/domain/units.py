"""Minor/major unit helpers shared by money values and amount inputs."""

from __future__ import annotations

from decimal import Decimal, getcontext, localcontext

from minted.domain.errors import InvalidCurrencyCodeError, compose_error_message

MIN_DECIMAL_PLACES = 0
MAX_DECIMAL_PLACES = 12
CURRENCY_CODE_LENGTH = 3


def normalize_currency_code(currency_code: object) -> str:
    """Return trimmed upper-case code or raise when it is not three characters."""

    if currency_code is None:
        raise InvalidCurrencyCodeError(details={"currency_code": None})

    normalized = str(currency_code).strip().upper()
    if len(normalized) != CURRENCY_CODE_LENGTH or any(
        character.isspace() for character in normalized
    ):
        raise InvalidCurrencyCodeError(
            message=compose_error_message(
                cause=f"Currency code {currency_code!r} is not three characters.",
                action="Use an ISO 4217 code such as USD or EUR.",
            ),
            details={"currency_code": str(currency_code)},
        )
    return normalized


def clamp_decimal_places(value: int) -> int:
    """Clamp a decimal place count to the supported [0, 12] range."""

    return max(MIN_DECIMAL_PLACES, min(MAX_DECIMAL_PLACES, int(value)))


def minor_to_major(minor_units: int, decimals: int) -> Decimal:
    """Return the exact major-unit Decimal for an integer minor-unit count."""

    value = Decimal(minor_units)
    with localcontext(prec=exact_precision(value)):
        return value.scaleb(-decimals)


def exact_precision(*operands: Decimal) -> int:
    """Return a context precision that keeps products and rescaling exact."""

    digits = sum(len(operand.as_tuple().digits) for operand in operands)
    return max(getcontext().prec, digits)


def to_fixed_point(minor_units: int, decimals: int) -> str:
    """Render minor units as a plain fixed-point string with `decimals` digits."""

    sign = "-" if minor_units < 0 else ""
    magnitude = abs(minor_units)
    if decimals == 0:
        return f"{sign}{magnitude}"

    divisor = 10**decimals
    whole, fraction = divmod(magnitude, divisor)
    return f"{sign}{whole}.{fraction:0{decimals}d}"
