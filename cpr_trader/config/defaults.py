"""Default configuration parameters for the CPR trading engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class WindowParams:
    """Exchange-local trading windows, closed intervals in HH:MM."""
    timezone: str = "Asia/Kolkata"
    preparation_start: str = "07:30"                 # Preload daily context
    preparation_end: str = "15:30"
    live_start: str = "09:30"                        # Fetch prices and trade
    live_end: str = "15:12"


@dataclass(frozen=True)
class CandleParams:
    """Market data (historical bars) parameters."""
    base_url: str = "https://api.kite.trade"
    interval: str = "3minute"
    interval_minutes: int = 3
    timeout_seconds: int = 8


@dataclass(frozen=True)
class CredentialParams:
    """Broker credential lookup parameters."""
    market_data_broker: str = "Zerodha"
    market_data_role: str = "admin"
    execution_broker: str = "Upstox"
    refresh_every_seconds: int = 40


@dataclass(frozen=True)
class GatewayParams:
    """Order execution gateway parameters."""
    mode: str = "paper"                              # paper | http
    base_url: str = "https://api.upstox.com"
    quantity: int = 75
    product: str = "I"                               # Intraday
    timeout_seconds: int = 8
    retry_attempts: int = 0                          # Same order tag on every attempt
    retry_delay_seconds: float = 1.0


@dataclass(frozen=True)
class CatalogParams:
    """Instrument catalog download parameters."""
    url: str = "https://assets.upstox.com/market-quote/instruments/exchange/complete.json.gz"
    output_dir: str = "downloads"
    timeout_seconds: int = 30


@dataclass(frozen=True)
class StoreParams:
    """SQLite store locations."""
    context_db_path: str = "context.db"
    journal_db_path: str = "trades.db"


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False
    include_caller: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    windows: WindowParams
    candles: CandleParams
    credentials: CredentialParams
    gateway: GatewayParams
    catalog: CatalogParams
    store: StoreParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        windows=WindowParams(),
        candles=CandleParams(),
        credentials=CredentialParams(),
        gateway=GatewayParams(),
        catalog=CatalogParams(),
        store=StoreParams(),
        logging=LoggingParams(),
    )
