"""
Trading window classification and cadence predicates.

All checks operate on a decomposed ``LocalClock`` rather than on raw
datetimes so boundary behaviour (e.g. a predicate firing only when
``second == 0``) can be tested in isolation.
"""

from dataclasses import dataclass
from datetime import date, datetime

from ..config.defaults import WindowParams
from ..data.models import WEEKDAY_NAMES
from ..utils.time import to_exchange_time


@dataclass(frozen=True)
class LocalClock:
    """Exchange-local wall-clock fields for one tick."""
    moment: datetime
    trading_date: date
    weekday: str
    hour: int
    minute: int
    second: int

    @classmethod
    def from_datetime(cls, moment: datetime, tz_name: str) -> "LocalClock":
        local = to_exchange_time(moment, tz_name)
        return cls(
            moment=local,
            trading_date=local.date(),
            weekday=WEEKDAY_NAMES[local.weekday()],
            hour=local.hour,
            minute=local.minute,
            second=local.second,
        )

    @property
    def minute_of_day(self) -> int:
        return self.hour * 60 + self.minute


def parse_hhmm(value: str) -> int:
    """Convert ``HH:MM`` to minutes of day."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class TradingWindow:
    """Closed interval of minutes of day."""
    name: str
    start: int
    end: int

    def contains(self, clock: LocalClock) -> bool:
        return self.start <= clock.minute_of_day <= self.end


@dataclass(frozen=True)
class WindowState:
    """Which windows are active for a tick."""
    preparation: bool
    live: bool

    @property
    def any_active(self) -> bool:
        return self.preparation or self.live


class TimeGate:
    """Classifies exchange-local time into the preparation and live windows."""

    def __init__(self, params: WindowParams = WindowParams()) -> None:
        self.timezone = params.timezone
        self.preparation = TradingWindow(
            "preparation",
            parse_hhmm(params.preparation_start),
            parse_hhmm(params.preparation_end),
        )
        self.live = TradingWindow(
            "live",
            parse_hhmm(params.live_start),
            parse_hhmm(params.live_end),
        )

    def clock(self, moment: datetime) -> LocalClock:
        """Decompose ``moment`` into exchange-local fields."""
        return LocalClock.from_datetime(moment, self.timezone)

    def classify(self, clock: LocalClock) -> WindowState:
        return WindowState(
            preparation=self.preparation.contains(clock),
            live=self.live.contains(clock),
        )


def is_candle_boundary(clock: LocalClock, interval_minutes: int = 3) -> bool:
    """True exactly on the first second of an interval-aligned minute."""
    return clock.minute % interval_minutes == 0 and clock.second == 0


def is_credential_refresh_tick(clock: LocalClock, every_seconds: int = 40) -> bool:
    """True on the seconds where credentials are force-refreshed."""
    return clock.second % every_seconds == 0
