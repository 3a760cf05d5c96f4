"""CLI bootstrap for minted."""

import enum
import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from minted.core.settings import (
    build_currency_configuration,
    build_exchange_rates,
    get_settings,
)
from minted.domain.currency_config import (
    CurrencyConfiguration,
    load_currency_configuration,
)
from minted.domain.digit_shift import DigitShiftInput
from minted.domain.errors import DomainError
from minted.domain.exchange import VariableExchangeRates, load_exchange_rates
from minted.domain.money import MonetaryValue, convert_value, format_value
from minted.domain.units import normalize_currency_code

app = typer.Typer(help="Minor-unit money values and bank-style amount entry.")


class LogLevel(enum.StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


CatalogOption = Annotated[
    Path | None,
    typer.Option("--catalog", exists=True, dir_okay=False, help="Currency JSON."),
]
RatesOption = Annotated[
    Path | None,
    typer.Option("--rates", exists=True, dir_okay=False, help="Rate table JSON."),
]


@app.callback()
def main_callback(
    log_level: Annotated[
        LogLevel,
        typer.Option(case_sensitive=False, help="Python logging level."),
    ] = LogLevel.WARNING,
) -> None:
    logging.basicConfig(level=log_level.value)


def _config(catalog: Path | None) -> CurrencyConfiguration:
    if catalog is not None:
        return load_currency_configuration(catalog)
    return build_currency_configuration(get_settings())


def _rates(rates: Path | None) -> VariableExchangeRates:
    if rates is not None:
        return load_exchange_rates(rates)
    return build_exchange_rates(get_settings())


def _fail(exc: DomainError) -> typer.Exit:
    typer.echo(f"{exc.code}: {exc.message}", err=True)
    return typer.Exit(code=1)


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint is available."""
    typer.echo("minted is ready")


@app.command("init-db")
def init_db() -> None:
    """Create the coin table in the configured database."""
    from minted.db.base import Base, import_orm_models
    from minted.db.session import engine

    import_orm_models()
    Base.metadata.create_all(engine)
    typer.echo(f"Tables ready on {engine.url.render_as_string(hide_password=True)}")


@app.command("format")
def format_command(
    minor_units: Annotated[int, typer.Argument()],
    currency_code: Annotated[str, typer.Argument()],
    to: Annotated[str | None, typer.Option("--to")] = None,
    catalog: CatalogOption = None,
    rates: RatesOption = None,
) -> None:
    """Format minor units, optionally converted into another currency."""
    try:
        value = MonetaryValue.create(minor_units, currency_code)
        typer.echo(format_value(value, _config(catalog), to, _rates(rates)))
    except DomainError as exc:
        raise _fail(exc) from exc


@app.command("convert")
def convert_command(
    minor_units: Annotated[int, typer.Argument()],
    currency_code: Annotated[str, typer.Argument()],
    to: Annotated[str, typer.Argument()],
    catalog: CatalogOption = None,
    rates: RatesOption = None,
) -> None:
    """Convert minor units into another currency and print the JSON value."""
    try:
        value = MonetaryValue.create(minor_units, currency_code)
        converted = convert_value(value, to, _rates(rates), _config(catalog))
    except DomainError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(converted.to_dict()))


@app.command("parse")
def parse_command(
    amount: Annotated[str, typer.Argument(help="Major-unit amount, e.g. 29.99")],
    currency_code: Annotated[str, typer.Argument()],
    catalog: CatalogOption = None,
) -> None:
    """Convert a decimal amount into minor units."""
    try:
        value = MonetaryValue.from_decimal(amount, currency_code, _config(catalog))
    except DomainError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(value.to_dict()))


@app.command("keypad")
def keypad_command(
    currency_code: Annotated[str, typer.Argument()],
    keys: Annotated[list[str], typer.Argument(help="Keys such as 1 2 Backspace")],
    seed: Annotated[int, typer.Option(help="Initial minor units.")] = 0,
    catalog: CatalogOption = None,
) -> None:
    """Replay keystrokes through the bank-style amount input."""
    try:
        iso = normalize_currency_code(currency_code)
        decimals = _config(catalog).decimal_places(iso)
    except DomainError as exc:
        raise _fail(exc) from exc

    entry = DigitShiftInput(decimals=decimals, buffer=seed, on_change=typer.echo)
    entry.attach()
    for key in keys:
        entry.handle_key(key)
    typer.echo(json.dumps({"minor_units": entry.detach()}))


def main() -> None:
    """Run the minted CLI application."""
    app()


if __name__ == "__main__":
    main()
