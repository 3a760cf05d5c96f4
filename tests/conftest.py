from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from minted.db.base import Base, import_orm_models
from minted.db.session import build_engine, build_session_factory
from minted.domain.currency_config import CurrencyConfiguration
from minted.domain.exchange import VariableExchangeRates
from minted.services.coin_service import DependentPolicy, has_coin, has_coins


class Order(Base):
    """Owner model used to exercise coin attributes."""

    __tablename__ = "test_orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    reference: Mapped[str] = mapped_column(String(32), nullable=False)


ORDER_COINS = has_coins("subtotal", "tax", "total")
SUBTOTAL, TAX, TOTAL = ORDER_COINS
DEPOSIT = has_coin("deposit", dependent=DependentPolicy.NULLIFY)
HOLD = has_coin("hold", dependent=DependentPolicy.RESTRICT)


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = build_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = build_session_factory(engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def config() -> CurrencyConfiguration:
    return CurrencyConfiguration.default()


@pytest.fixture
def rates() -> VariableExchangeRates:
    return VariableExchangeRates.from_mapping({"USD": {"EUR": "0.85", "JPY": "150"}})


def seed_order(session: Session, reference: str = "ord-1") -> Order:
    order = Order(reference=reference)
    session.add(order)
    session.commit()
    return order
