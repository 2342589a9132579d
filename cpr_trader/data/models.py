"""Core data models for the trading-day context and market data."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

# Fixed evaluation order for pivot band checks and crossing exits
PIVOT_LEVEL_NAMES = ("r1", "r2", "r3", "r4", "s1", "s2", "s3", "s4")
CROSSING_LEVEL_NAMES = PIVOT_LEVEL_NAMES + ("tc", "bc")

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
                 "Saturday", "Sunday")


@dataclass(frozen=True)
class DailyLevels:
    """Precomputed CPR and pivot levels for one trading date."""
    for_day: date
    bc: float
    tc: float
    r1: float
    r2: float
    r3: float
    r4: float
    s1: float
    s2: float
    s3: float
    s4: float
    buffer: float

    def pivot_levels(self) -> tuple[tuple[str, float], ...]:
        """Support/resistance levels in band evaluation order."""
        return tuple((name, getattr(self, name)) for name in PIVOT_LEVEL_NAMES)

    def crossing_levels(self) -> tuple[tuple[str, float], ...]:
        """All levels in crossing-exit evaluation order."""
        return tuple((name, getattr(self, name)) for name in CROSSING_LEVEL_NAMES)

    def as_dict(self) -> dict[str, Any]:
        """Level values for log context."""
        values: dict[str, Any] = {name: getattr(self, name) for name in CROSSING_LEVEL_NAMES}
        values["buffer"] = self.buffer
        return values


@dataclass(frozen=True)
class SessionAsset:
    """The asset assigned to the trading day."""
    name: str
    instrument_token: str


@dataclass(frozen=True)
class ExecutionCredentials:
    """API key / access token pair for a broker account."""
    broker: str
    api_key: str
    access_token: str

    def __repr__(self) -> str:
        return f"ExecutionCredentials(broker={self.broker!r}, api_key={self.api_key!r}, access_token=***)"


@dataclass(frozen=True)
class PriceBar:
    """Single OHLCV bar from the historical endpoint."""
    timestamp: Optional[str]
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: Optional[float] = None

    @classmethod
    def from_row(cls, row: list) -> "PriceBar":
        """Build a bar from a ``[ts, open, high, low, close, volume]`` row."""
        padded = list(row) + [None] * (6 - len(row))
        return cls(
            timestamp=padded[0],
            open=padded[1],
            high=padded[2],
            low=padded[3],
            close=padded[4],
            volume=padded[5],
        )


@dataclass(frozen=True)
class Instrument:
    """Tradable option contract from the instrument catalog."""
    instrument_key: str
    trading_symbol: str
    asset_symbol: str
    strike_price: float
    instrument_type: str
    expiry: int                                      # Epoch milliseconds
    lot_size: Optional[int] = None
