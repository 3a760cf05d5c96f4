"""Coin persistence operations keyed by owner and label."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from minted.db.models.coin import Coin
from minted.domain.errors import DuplicateLabelError, compose_error_message

logger = logging.getLogger(__name__)


class CoinRepository:
    """Repository enforcing one coin per (owner_type, owner_id, label)."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, owner_type: str, owner_id: str, label: str) -> Coin | None:
        statement = select(Coin).where(
            Coin.owner_type == owner_type,
            Coin.owner_id == owner_id,
            Coin.label == label,
        )
        return self._session.scalar(statement)

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[Coin]:
        statement = (
            select(Coin)
            .where(Coin.owner_type == owner_type, Coin.owner_id == owner_id)
            .order_by(Coin.label.asc())
        )
        return list(self._session.scalars(statement).all())

    def add(self, coin: Coin) -> Coin:
        """Insert a new coin; a taken label raises DuplicateLabelError."""
        try:
            with self._session.begin_nested():
                self._session.add(coin)
                self._session.flush()
        except IntegrityError as exc:
            raise _duplicate_label(coin.owner_type, coin.owner_id, coin.label) from exc
        return coin

    def upsert(
        self,
        *,
        owner_type: str,
        owner_id: str,
        label: str,
        minor_units: int,
        currency_code: str,
    ) -> Coin:
        """Update the coin for (owner, label) or create it when absent.

        A concurrent writer creating the same row first makes the insert fail
        on the unique constraint; the existing row is then updated instead.
        """
        existing = self.find(owner_type, owner_id, label)
        if existing is not None:
            return self._apply(existing, minor_units, currency_code)

        coin = Coin(
            owner_type=owner_type,
            owner_id=owner_id,
            label=label,
            currency_minor=minor_units,
            currency_code=currency_code,
        )
        try:
            with self._session.begin_nested():
                self._session.add(coin)
                self._session.flush()
            return coin
        except IntegrityError:
            logger.info(
                "coin_upsert_conflict",
                extra={
                    "owner_type": owner_type,
                    "owner_id": owner_id,
                    "label": label,
                },
            )

        if coin in self._session:
            self._session.expunge(coin)
        winner = self.find(owner_type, owner_id, label)
        if winner is None:
            raise _duplicate_label(owner_type, owner_id, label)
        return self._apply(winner, minor_units, currency_code)

    def delete(self, owner_type: str, owner_id: str, label: str) -> bool:
        statement = delete(Coin).where(
            Coin.owner_type == owner_type,
            Coin.owner_id == owner_id,
            Coin.label == label,
        )
        result = self._session.execute(statement)
        return bool(result.rowcount)

    def delete_for_owner(
        self, owner_type: str, owner_id: str, labels: list[str] | None = None
    ) -> int:
        statement = delete(Coin).where(
            Coin.owner_type == owner_type, Coin.owner_id == owner_id
        )
        if labels is not None:
            statement = statement.where(Coin.label.in_(labels))
        result = self._session.execute(statement)
        return int(result.rowcount or 0)

    def nullify_owner(self, owner_type: str, owner_id: str, labels: list[str]) -> int:
        """Detach coins from a removed owner while keeping the rows."""
        statement = (
            update(Coin)
            .where(
                Coin.owner_type == owner_type,
                Coin.owner_id == owner_id,
                Coin.label.in_(labels),
            )
            .values(owner_type=None, owner_id=None)
        )
        result = self._session.execute(statement)
        return int(result.rowcount or 0)

    def _apply(self, coin: Coin, minor_units: int, currency_code: str) -> Coin:
        coin.currency_minor = minor_units
        coin.currency_code = currency_code
        self._session.flush()
        return coin


def _duplicate_label(
    owner_type: str | None, owner_id: str | None, label: str
) -> DuplicateLabelError:
    return DuplicateLabelError(
        message=compose_error_message(
            cause=f"Label '{label}' is already used by this owner.",
            action="Update the existing coin instead of adding another one.",
        ),
        details={"owner_type": owner_type, "owner_id": owner_id, "label": label},
    )
