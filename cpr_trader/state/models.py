"""
Position state data models.

Immutable records for the single open position and for the outcome of
applying a signal to it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..execution.base import OrderResult
from ..signals.engine import Direction


@dataclass(frozen=True)
class TradeState:
    """The open position, or no position when both fields are None."""
    direction: Optional[Direction] = None
    symbol: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.direction is not None and self.symbol is not None

    @property
    def label(self) -> str:
        if not self.is_open:
            return "Flat"
        return f"Open({self.direction.value}, {self.symbol})"

    @classmethod
    def open(cls, direction: Direction, symbol: str) -> "TradeState":
        return cls(direction=direction, symbol=symbol)


FLAT = TradeState()


class TradeAction(str, Enum):
    """What applying a signal did."""
    NONE = "none"
    ENTER = "enter"
    EXIT = "exit"
    FLIP = "flip"
    DUPLICATE_SUPPRESSED = "duplicate_suppressed"
    UNEXPECTED_EXIT = "unexpected_exit"


@dataclass(frozen=True)
class TradeOutcome:
    """Result of applying one signal."""
    action: TradeAction
    previous: TradeState
    current: TradeState
    orders: tuple[OrderResult, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return self.previous != self.current
