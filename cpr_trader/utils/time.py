"""
Exchange-local time helpers.

The engine runs on whatever timezone the host uses, but every window,
cadence check and market data range is expressed in the exchange's local
time. These helpers do the conversion in one place.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_EXCHANGE_TZ = "Asia/Kolkata"


def exchange_now(tz_name: str = DEFAULT_EXCHANGE_TZ) -> datetime:
    """Current wall-clock time in the exchange timezone."""
    return datetime.now(timezone.utc).astimezone(ZoneInfo(tz_name))


def to_exchange_time(moment: datetime, tz_name: str = DEFAULT_EXCHANGE_TZ) -> datetime:
    """
    Convert a datetime to exchange-local time.

    Args:
        moment: Aware datetime, or naive datetime interpreted as UTC
        tz_name: IANA name of the exchange timezone

    Returns:
        Aware datetime in the exchange timezone
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name))


def format_exchange_minute(moment: datetime, tz_name: Optional[str] = None) -> str:
    """
    Format a timestamp as ``YYYY-MM-DD HH:MM:00`` for the historical endpoint.

    Seconds are always zeroed. If ``tz_name`` is given the moment is converted
    first; otherwise it is formatted as-is.
    """
    if tz_name is not None:
        moment = to_exchange_time(moment, tz_name)
    return moment.strftime("%Y-%m-%d %H:%M:00")


def bar_range(moment: datetime, interval_minutes: int,
              tz_name: Optional[str] = None) -> tuple[str, str]:
    """Return the ``(from, to)`` pair covering the bar that ends at ``moment``."""
    start = moment - timedelta(minutes=interval_minutes)
    return (
        format_exchange_minute(start, tz_name),
        format_exchange_minute(moment, tz_name),
    )


def start_of_day_ms(moment: datetime) -> int:
    """Epoch milliseconds of local midnight for ``moment``'s date."""
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if midnight.tzinfo is None:
        midnight = midnight.replace(tzinfo=timezone.utc)
    return int(midnight.timestamp() * 1000)
