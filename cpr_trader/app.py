"""
Process bootstrap.

Loads and validates configuration, configures logging, verifies the context
store is reachable and wires the engine into the scheduler.
"""

import signal
import sys
from pathlib import Path
from typing import Optional

import structlog

from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader, build_settings
from .config.validation import ConfigValidator
from .context.session import SessionContext
from .engine import TradingEngine
from .errors import ConfigError, ContextUnavailable
from .execution.base import BaseOrderGateway
from .execution.http_gateway import HttpOrderGateway
from .execution.paper import PaperOrderGateway
from .instruments.catalog import InstrumentCatalog, NearestExpiryResolver
from .logging.config import configure_logging
from .market.candles import CandleFetcher
from .persistence.context_store import ContextStore
from .persistence.trade_journal import TradeJournal
from .scheduler import Scheduler
from .state.machine import TradeStateMachine

logger = structlog.get_logger(__name__)


def load_settings(config_dir: Optional[Path] = None) -> DefaultConfig:
    """
    Load, validate and type the runtime configuration.

    Raises:
        ConfigError: configuration failed validation
    """
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()

    errors = ConfigValidator.validate_config(config)
    if errors:
        messages = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
        raise ConfigError("Invalid configuration", errors=messages)

    return build_settings(config)


def build_gateway(settings: DefaultConfig, session: SessionContext) -> BaseOrderGateway:
    if settings.gateway.mode == "http":
        return HttpOrderGateway(settings.gateway, session.current_execution_credentials)
    return PaperOrderGateway()


def build_engine(settings: DefaultConfig, store: ContextStore) -> TradingEngine:
    """Wire every component of the engine from ``settings``."""
    session = SessionContext(store, settings.credentials)
    catalog = InstrumentCatalog(settings.catalog, settings.windows.timezone)
    machine = TradeStateMachine(
        gateway=build_gateway(settings, session),
        resolver=NearestExpiryResolver(catalog, settings.windows.timezone),
    )
    return TradingEngine(
        session=session,
        fetcher=CandleFetcher(settings.candles, settings.windows.timezone),
        machine=machine,
        settings=settings,
        catalog=catalog,
        journal=TradeJournal(settings.store.journal_db_path),
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Run the trader until interrupted. ``argv[0]`` may name the config directory."""
    argv = sys.argv[1:] if argv is None else argv
    config_dir = Path(argv[0]) if argv else None

    try:
        settings = load_settings(config_dir)
    except ConfigError as e:
        configure_logging()
        logger.critical("Configuration invalid", errors=e.errors)
        return 2

    configure_logging(
        level=settings.logging.level,
        format_json=settings.logging.format_json,
        include_caller=settings.logging.include_caller,
    )

    store = ContextStore(settings.store.context_db_path, settings.candles.timeout_seconds)
    try:
        store.ping()
    except ContextUnavailable as e:
        logger.critical("Context store unreachable, refusing to start", error=str(e))
        return 1

    engine = build_engine(settings, store)
    scheduler = Scheduler(engine.evaluate_tick)

    def _shutdown(signum, frame):
        logger.info("Shutdown requested", signal=signum)
        scheduler.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    logger.info(
        "CPR trader starting",
        gateway_mode=settings.gateway.mode,
        timezone=settings.windows.timezone,
    )
    scheduler.run()
    return 0
