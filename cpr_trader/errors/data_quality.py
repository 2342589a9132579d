"""
Data absence error classifications.

These exceptions describe inputs that are missing for the current tick. None
of them are fatal: the tick is aborted, nothing is cached and the lookup is
retried on the next tick.
"""

from typing import Optional, Dict, Any


class DataAbsenceError(Exception):
    """Base class for missing data that is handled by skipping the tick."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class NoCandleData(DataAbsenceError):
    """The historical endpoint returned zero bars for the requested range."""

    def __init__(self, message: str, instrument_token: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.instrument_token = instrument_token


class InvalidPrice(DataAbsenceError):
    """The latest bar carries no close price."""

    def __init__(self, message: str, raw_candle: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_candle = raw_candle


class NoAssetConfigured(DataAbsenceError):
    """No asset is assigned to the current weekday."""

    def __init__(self, message: str, weekday: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.weekday = weekday


class LevelsNotConfigured(DataAbsenceError):
    """No daily levels row exists for the trading date."""

    def __init__(self, message: str, trading_date: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.trading_date = trading_date


class CredentialsUnavailable(DataAbsenceError):
    """No active broker credentials were found."""

    def __init__(self, message: str, broker: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.broker = broker


class InstrumentNotFound(DataAbsenceError):
    """The instrument catalog has no contract for the requested strike."""

    def __init__(self, message: str, asset_symbol: Optional[str] = None,
                 strike_price: Optional[int] = None,
                 option_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.asset_symbol = asset_symbol
        self.strike_price = strike_price
        self.option_type = option_type
