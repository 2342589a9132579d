"""
Error classification for the trading engine.

Errors are grouped by how a tick reacts to them: data absence and transient
I/O abort the current tick and are retried naturally on the next one, while
system failures are either fatal at startup or escalated to an operator.
"""

from .data_quality import (
    DataAbsenceError,
    NoCandleData,
    InvalidPrice,
    NoAssetConfigured,
    LevelsNotConfigured,
    CredentialsUnavailable,
    InstrumentNotFound,
)
from .system_failures import (
    SystemFailureError,
    ContextUnavailable,
    FlipEntryFailed,
    ConfigError,
)
from .recovery import (
    RecoverableError,
    FetchError,
    OrderGatewayError,
    CatalogError,
)

__all__ = [
    # Data absence
    "DataAbsenceError",
    "NoCandleData",
    "InvalidPrice",
    "NoAssetConfigured",
    "LevelsNotConfigured",
    "CredentialsUnavailable",
    "InstrumentNotFound",
    # System failures
    "SystemFailureError",
    "ContextUnavailable",
    "FlipEntryFailed",
    "ConfigError",
    # Transient I/O
    "RecoverableError",
    "FetchError",
    "OrderGatewayError",
    "CatalogError",
]
