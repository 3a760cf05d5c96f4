"""Bank-style amount entry where each typed digit shifts the amount left.

Typing ``1``, ``2``, ``3``, ``4`` into a two-decimal field shows ``0.01``,
``0.12``, ``1.23`` and ``12.34``. The state is a single integer buffer of minor
units; the display is always recomputed from it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from minted.domain.units import clamp_decimal_places, to_fixed_point

logger = logging.getLogger(__name__)

# Signed 64-bit range of the persisted minor-unit column.
MAX_MINOR_UNITS = 2**63 - 1

BACKSPACE = "Backspace"
TAB = "Tab"
DIGITS = frozenset("0123456789")


class KeyResult(StrEnum):
    """What the input did with a keystroke."""

    ACCEPTED = "accepted"
    SUPPRESSED = "suppressed"
    PASSED_THROUGH = "passed_through"


@dataclass(slots=True)
class DigitShiftInput:
    """Per-field keystroke state machine over an integer minor-unit buffer."""

    decimals: int
    buffer: int = 0
    on_change: Callable[[str], None] | None = None
    max_minor_units: int = MAX_MINOR_UNITS
    attached: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.decimals = clamp_decimal_places(self.decimals)
        if isinstance(self.buffer, bool) or not isinstance(self.buffer, int):
            raise TypeError("Digit-shift buffer must be an integer")

    @property
    def display(self) -> str:
        return to_fixed_point(self.buffer, self.decimals)

    def attach(self) -> str:
        """Start accepting keys and emit the initial display."""
        self.attached = True
        return self._notify()

    def handle_key(self, key: str) -> KeyResult:
        if not self.attached or key == TAB:
            return KeyResult.PASSED_THROUGH
        if key == BACKSPACE:
            self._drop_last_digit()
            self._notify()
            return KeyResult.ACCEPTED
        if len(key) == 1 and key in DIGITS:
            if not self._append_digit(int(key)):
                return KeyResult.SUPPRESSED
            self._notify()
            return KeyResult.ACCEPTED
        return KeyResult.SUPPRESSED

    def type_keys(self, keys: Iterable[str]) -> list[str]:
        """Feed keys in order and return the display after each accepted one."""
        displays: list[str] = []
        for key in keys:
            if self.handle_key(key) is KeyResult.ACCEPTED:
                displays.append(self.display)
        return displays

    def detach(self) -> int:
        """Stop accepting keys and return the minor units to persist."""
        self.attached = False
        return self.buffer

    def _append_digit(self, digit: int) -> bool:
        if self.buffer < 0:
            candidate = self.buffer * 10 - digit
        else:
            candidate = self.buffer * 10 + digit
        if abs(candidate) > self.max_minor_units:
            logger.debug(
                "digit_rejected_overflow",
                extra={"buffer": self.buffer, "digit": digit},
            )
            return False
        self.buffer = candidate
        return True

    def _drop_last_digit(self) -> None:
        magnitude = abs(self.buffer) // 10
        self.buffer = -magnitude if self.buffer < 0 else magnitude

    def _notify(self) -> str:
        rendered = self.display
        if self.on_change is not None:
            self.on_change(rendered)
        return rendered
