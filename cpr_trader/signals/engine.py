"""
CPR / pivot level signal evaluation.

``evaluate`` is a pure function of the latest price, the day's levels, the
open position's direction and the latest bar. Rules run in a fixed order and
later rules may overwrite earlier ones:

1. strike rounding (always computed, carried on the signal)
2. TC breakout band
3. BC breakdown band
4. inside the CPR with an open position -> exit
5. pivot bands r1..r4, s1..s4, every level checked, last match wins
6. crossing exit, only if still no action and a position is open
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..data.models import DailyLevels, PriceBar

STRIKE_STEP = 100


class SignalKind(str, Enum):
    """Action requested by a signal."""
    NO_ACTION = "No Action"
    BUY = "Buy"
    SELL = "Sell"
    EXIT = "Exit"


class Direction(str, Enum):
    """Directional side of a position."""
    CE = "CE"
    PE = "PE"

    @property
    def opposite(self) -> "Direction":
        return Direction.PE if self is Direction.CE else Direction.CE


NEUTRAL_REASON = "Price is in a neutral zone."


@dataclass(frozen=True)
class Signal:
    """Result of one evaluation."""
    kind: SignalKind
    direction: Optional[Direction]
    reason: str
    strike: int

    @property
    def is_actionable(self) -> bool:
        return self.kind is not SignalKind.NO_ACTION


def round_strike(price: float, step: int = STRIKE_STEP) -> int:
    """Map a price to the nearest strike, rounding exactly half a step down."""
    base = int(math.floor(price / step)) * step
    if price % step > step / 2:
        return base + step
    return base


def crossed_against(direction: Direction, bar: PriceBar, level: float) -> bool:
    """True when ``bar`` moved through ``level`` against a ``direction`` holder.

    A PE holder is invalidated by a bar that opened below the level and
    closed above it; a CE holder by the mirror image.
    """
    if bar.open is None or bar.close is None:
        return False
    if direction is Direction.PE:
        return bar.close > level and bar.open < level
    return bar.close < level and bar.open > level


def evaluate(price: float, levels: DailyLevels, last_direction: Optional[Direction],
             prior_bar: Optional[PriceBar]) -> Signal:
    """
    Evaluate the trading signal for ``price``.

    Args:
        price: Close of the latest completed bar
        levels: The day's CPR and pivot levels
        last_direction: Direction of the open position, None when flat
        prior_bar: Latest bar, used for the crossing exit

    Returns:
        Signal with kind, direction, reason and rounded strike
    """
    strike = round_strike(price)
    buffer = levels.buffer

    kind = SignalKind.NO_ACTION
    direction: Optional[Direction] = None
    reason = NEUTRAL_REASON

    if levels.tc <= price <= levels.tc + buffer:
        kind, direction = SignalKind.BUY, Direction.CE
        reason = "Price is above TC within buffer."
    elif levels.bc - buffer <= price <= levels.bc:
        kind, direction = SignalKind.SELL, Direction.PE
        reason = "Price is below BC within buffer."
    elif levels.bc < price < levels.tc and last_direction is not None:
        kind, direction = SignalKind.EXIT, last_direction
        reason = "Price is within CPR range."

    for name, level in levels.pivot_levels():
        if level < price <= level + buffer:
            kind, direction = SignalKind.BUY, Direction.CE
            reason = f"Price is above {name} ({level}) within buffer."
        elif level - buffer <= price < level:
            kind, direction = SignalKind.SELL, Direction.PE
            reason = f"Price is below {name} ({level}) within buffer."

    if kind is SignalKind.NO_ACTION and last_direction is not None and prior_bar is not None:
        for name, level in levels.crossing_levels():
            if crossed_against(last_direction, prior_bar, level):
                kind, direction = SignalKind.EXIT, last_direction
                reason = f"Price crossed the level {name}"
                break

    return Signal(kind=kind, direction=direction, reason=reason, strike=strike)
