"""Coin ORM model: one named monetary attribute of one owner."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from minted.db.base import Base
from minted.domain.money import MonetaryValue, assign_amount

LABEL_MAX_LENGTH = 64


class Coin(Base):
    """Monetary value attached to an owner under a label such as "price"."""

    __tablename__ = "minted_coins"
    __table_args__ = (
        UniqueConstraint(
            "owner_type",
            "owner_id",
            "label",
            name="uq_minted_coins_owner_label",
        ),
        CheckConstraint(
            "length(currency_code) = 3",
            name="ck_minted_coins_currency_code_length",
        ),
        Index("ix_minted_coins_owner", "owner_type", "owner_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    label: Mapped[str] = mapped_column(String(LABEL_MAX_LENGTH), nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    currency_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def amount(self) -> MonetaryValue | None:
        if self.currency_code is None or self.currency_minor is None:
            return None
        return MonetaryValue(
            minor_units=self.currency_minor, currency_code=self.currency_code
        )

    @amount.setter
    def amount(self, value: MonetaryValue | int) -> None:
        current = (
            MonetaryValue(
                minor_units=self.currency_minor or 0,
                currency_code=self.currency_code,
            )
            if self.currency_code is not None
            else None
        )
        assigned = assign_amount(current, value)
        self.currency_minor = assigned.minor_units
        self.currency_code = assigned.currency_code
