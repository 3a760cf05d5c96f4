"""Business service for named monetary attributes ("coins") of owners."""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from minted.db.models.coin import LABEL_MAX_LENGTH, Coin
from minted.domain.currency_config import CurrencyConfiguration
from minted.domain.errors import (
    DeleteRestrictedError,
    InvalidAmountTypeError,
    InvalidLabelError,
    InvalidRequestError,
    OwnerNotPersistedError,
    compose_error_message,
)
from minted.domain.exchange import ExchangeRateTable
from minted.domain.money import (
    MonetaryValue,
    assign_amount,
    convert_value,
    format_value,
)
from minted.domain.units import normalize_currency_code

logger = logging.getLogger(__name__)

LABEL_PATTERN = re.compile(r"^[a-z0-9_]+$")

Amount = MonetaryValue | int | Decimal | float | str


class DependentPolicy(enum.StrEnum):
    """What happens to a coin when its owner is removed."""

    DESTROY = "destroy"
    NULLIFY = "nullify"
    RESTRICT = "restrict"


def normalize_label(label: str) -> str:
    """Return the canonical lower-case label or raise InvalidLabelError."""

    normalized = str(label).strip().lower()
    if (
        not normalized
        or len(normalized) > LABEL_MAX_LENGTH
        or LABEL_PATTERN.fullmatch(normalized) is None
    ):
        raise InvalidLabelError(details={"label": str(label)})
    return normalized


@dataclass(frozen=True, slots=True)
class CoinAttribute:
    """Declared monetary attribute of an owner class, e.g. PRICE = has_coin("price")."""

    label: str
    dependent: DependentPolicy = DependentPolicy.DESTROY

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", normalize_label(self.label))
        object.__setattr__(self, "dependent", DependentPolicy(self.dependent))


def has_coin(
    label: str, *, dependent: DependentPolicy = DependentPolicy.DESTROY
) -> CoinAttribute:
    return CoinAttribute(label=label, dependent=dependent)


def has_coins(
    *labels: str, dependent: DependentPolicy = DependentPolicy.DESTROY
) -> tuple[CoinAttribute, ...]:
    return tuple(has_coin(label, dependent=dependent) for label in labels)


@dataclass(frozen=True, slots=True)
class OwnerRef:
    """Polymorphic reference to the entity that owns coins."""

    owner_type: str
    owner_id: str | None

    def require_persisted(self) -> tuple[str, str]:
        if self.owner_id is None or not str(self.owner_id).strip():
            raise OwnerNotPersistedError(details={"owner_type": self.owner_type})
        return self.owner_type, str(self.owner_id)


def owner_ref(instance: object) -> OwnerRef:
    """Build an OwnerRef from a SQLAlchemy mapped instance or pass one through."""

    if isinstance(instance, OwnerRef):
        return instance
    try:
        state = inspect(instance)
    except NoInspectionAvailable as exc:
        raise InvalidRequestError(
            message=compose_error_message(
                cause=f"{type(instance).__name__} is not a mapped owner.",
                action="Pass a persisted ORM instance or an OwnerRef.",
            )
        ) from exc

    owner_type = type(instance).__name__
    identity = state.identity
    if identity is None:
        return OwnerRef(owner_type=owner_type, owner_id=None)
    return OwnerRef(
        owner_type=owner_type,
        owner_id=":".join(str(part) for part in identity),
    )


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by this service."""

    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class CoinRepositoryProtocol(Protocol):
    """Coin repository contract consumed by service."""

    def find(self, owner_type: str, owner_id: str, label: str) -> Coin | None: ...

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[Coin]: ...

    def upsert(
        self,
        *,
        owner_type: str,
        owner_id: str,
        label: str,
        minor_units: int,
        currency_code: str,
    ) -> Coin: ...

    def delete(self, owner_type: str, owner_id: str, label: str) -> bool: ...

    def delete_for_owner(
        self, owner_type: str, owner_id: str, labels: list[str] | None = None
    ) -> int: ...

    def nullify_owner(
        self, owner_type: str, owner_id: str, labels: list[str]
    ) -> int: ...


class CoinService:
    """Reads, writes and formats the coins of persisted owners."""

    def __init__(
        self,
        *,
        coin_repository: CoinRepositoryProtocol,
        session: SessionProtocol,
        config: CurrencyConfiguration,
        rates: ExchangeRateTable | None = None,
    ) -> None:
        self._coin_repository = coin_repository
        self._session = session
        self._config = config
        self._rates = rates

    @property
    def config(self) -> CurrencyConfiguration:
        return self._config

    def get(self, owner: object, attribute: CoinAttribute | str) -> Coin | None:
        owner_type, owner_id = owner_ref(owner).require_persisted()
        return self._coin_repository.find(owner_type, owner_id, _label(attribute))

    def amount(
        self, owner: object, attribute: CoinAttribute | str
    ) -> MonetaryValue | None:
        coin = self.get(owner, attribute)
        return coin.amount if coin is not None else None

    def load(
        self, owner: object, attributes: Iterable[CoinAttribute | str]
    ) -> dict[str, MonetaryValue | None]:
        """Return every declared label mapped to its value, or None when unset."""
        owner_type, owner_id = owner_ref(owner).require_persisted()
        stored = {
            coin.label: coin.amount
            for coin in self._coin_repository.list_for_owner(owner_type, owner_id)
        }
        return {
            label: stored.get(label)
            for label in (_label(attribute) for attribute in attributes)
        }

    def format(
        self,
        owner: object,
        attribute: CoinAttribute | str,
        to: str | None = None,
    ) -> str | None:
        value = self.amount(owner, attribute)
        if value is None:
            return None
        return format_value(value, self._config, to, self._rates)

    def amount_in(
        self, owner: object, attribute: CoinAttribute | str, to: str
    ) -> str | None:
        """Format the coin converted into another currency."""
        return self.format(owner, attribute, to=to)

    def exchange(
        self, owner: object, attribute: CoinAttribute | str, to: str
    ) -> MonetaryValue | None:
        value = self.amount(owner, attribute)
        if value is None:
            return None
        return convert_value(value, to, self._rates, self._config)

    def set(
        self,
        owner: object,
        attribute: CoinAttribute | str,
        *,
        amount: Amount,
        currency_code: str | None = None,
    ) -> Coin:
        """Create or update the coin stored under (owner, label)."""
        owner_type, owner_id = owner_ref(owner).require_persisted()
        label = _label(attribute)
        iso = (
            normalize_currency_code(currency_code)
            if currency_code is not None
            else None
        )

        try:
            existing = self._coin_repository.find(owner_type, owner_id, label)
            value = self._resolve_amount(
                amount, iso, existing.amount if existing is not None else None
            )
            coin = self._coin_repository.upsert(
                owner_type=owner_type,
                owner_id=owner_id,
                label=label,
                minor_units=value.minor_units,
                currency_code=value.currency_code,
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "coin_set",
            extra={
                "owner_type": owner_type,
                "owner_id": owner_id,
                "label": label,
                "currency_code": value.currency_code,
            },
        )
        return coin

    def remove(self, owner: object, attribute: CoinAttribute | str) -> bool:
        owner_type, owner_id = owner_ref(owner).require_persisted()
        label = _label(attribute)
        try:
            removed = self._coin_repository.delete(owner_type, owner_id, label)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        if removed:
            logger.info(
                "coin_removed",
                extra={"owner_type": owner_type, "owner_id": owner_id, "label": label},
            )
        return removed

    def destroy_owner(
        self, owner: object, attributes: Iterable[CoinAttribute]
    ) -> dict[str, int]:
        """Apply each attribute's dependent policy before the owner is removed.

        Restricted coins block the whole operation before anything changes.
        Coins under labels the owner no longer declares are destroyed.
        """
        owner_type, owner_id = owner_ref(owner).require_persisted()
        declared = {attribute.label: attribute.dependent for attribute in attributes}
        stored_labels = {
            coin.label
            for coin in self._coin_repository.list_for_owner(owner_type, owner_id)
        }

        blocking = sorted(
            label
            for label in stored_labels
            if declared.get(label) is DependentPolicy.RESTRICT
        )
        if blocking:
            raise DeleteRestrictedError(
                message=compose_error_message(
                    cause=f"Coins {', '.join(blocking)} restrict owner removal.",
                    action="Remove those coins before deleting the owner.",
                ),
                details={
                    "owner_type": owner_type,
                    "owner_id": owner_id,
                    "labels": blocking,
                },
            )

        to_nullify = sorted(
            label
            for label in stored_labels
            if declared.get(label) is DependentPolicy.NULLIFY
        )
        to_destroy = sorted(stored_labels - set(to_nullify))

        try:
            nullified = (
                self._coin_repository.nullify_owner(owner_type, owner_id, to_nullify)
                if to_nullify
                else 0
            )
            destroyed = (
                self._coin_repository.delete_for_owner(
                    owner_type, owner_id, to_destroy
                )
                if to_destroy
                else 0
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "owner_coins_destroyed",
            extra={
                "owner_type": owner_type,
                "owner_id": owner_id,
                "destroyed": destroyed,
                "nullified": nullified,
            },
        )
        return {"destroyed": destroyed, "nullified": nullified}

    def _resolve_amount(
        self,
        amount: Amount,
        iso: str | None,
        current: MonetaryValue | None,
    ) -> MonetaryValue:
        if isinstance(amount, MonetaryValue):
            if iso is not None and iso != amount.currency_code:
                raise InvalidRequestError(
                    message=compose_error_message(
                        cause=(
                            f"Amount is in {amount.currency_code} but "
                            f"currency_code is {iso}."
                        ),
                        action="Convert the amount first or omit currency_code.",
                    ),
                    details={"amount_currency": amount.currency_code, "currency": iso},
                )
            return assign_amount(current, amount)

        if isinstance(amount, int) and not isinstance(amount, bool):
            if iso is not None:
                return MonetaryValue.create(amount, iso)
            return assign_amount(current, amount)

        if isinstance(amount, (Decimal, float, str)):
            fallback = current.currency_code if current is not None else None
            return MonetaryValue.from_decimal(amount, iso or fallback, self._config)

        raise InvalidAmountTypeError(
            message=compose_error_message(
                cause=f"Cannot set a coin from {type(amount).__name__}.",
                action=(
                    "Send a MonetaryValue, integer minor units or a decimal amount."
                ),
            ),
            details={"amount": repr(amount)},
        )


def _label(attribute: CoinAttribute | str) -> str:
    if isinstance(attribute, CoinAttribute):
        return attribute.label
    return normalize_label(attribute)
