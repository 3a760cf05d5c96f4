"""Binds a digit-shift amount input to a stored coin."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from minted.db.models.coin import Coin
from minted.domain.currency_config import CurrencyConfiguration
from minted.domain.digit_shift import DigitShiftInput
from minted.domain.units import normalize_currency_code
from minted.services.coin_service import CoinAttribute, CoinService, owner_ref

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CurrencyField:
    """One attached amount input for an owner's coin."""

    owner: object
    attribute: CoinAttribute | str
    currency_code: str
    entry: DigitShiftInput

    @property
    def display(self) -> str:
        return self.entry.display


class CurrencyFieldBinder:
    """Seeds inputs from stored coins and persists the typed minor units."""

    def __init__(self, coin_service: CoinService, config: CurrencyConfiguration) -> None:
        self._coin_service = coin_service
        self._config = config

    def attach(
        self,
        owner: object,
        attribute: CoinAttribute | str,
        currency_code: str,
        *,
        decimals: int | None = None,
        on_change: Callable[[str], None] | None = None,
    ) -> CurrencyField:
        iso = normalize_currency_code(currency_code)
        # Unsaved owners start from zero; saving happens on submit.
        stored = (
            self._coin_service.amount(owner, attribute)
            if owner_ref(owner).owner_id is not None
            else None
        )
        if stored is not None and stored.currency_code != iso:
            logger.info(
                "currency_field_reset",
                extra={
                    "stored_currency": stored.currency_code,
                    "currency_code": iso,
                },
            )
            stored = None
        entry = DigitShiftInput(
            decimals=(
                decimals if decimals is not None else self._config.decimal_places(iso)
            ),
            buffer=stored.minor_units if stored is not None else 0,
            on_change=on_change,
        )
        entry.attach()
        return CurrencyField(
            owner=owner, attribute=attribute, currency_code=iso, entry=entry
        )

    def submit(self, field: CurrencyField) -> Coin:
        minor_units = field.entry.detach()
        return self._coin_service.set(
            field.owner,
            field.attribute,
            amount=minor_units,
            currency_code=field.currency_code,
        )
