"""ORM models for the minted domain."""

from minted.db.models.coin import Coin

__all__ = ["Coin"]
