"""
Main evaluation engine coordinator.

Runs one evaluation tick of the trading pipeline:
TimeGate → SessionContext refresh → CandleFetcher → SignalEngine → TradeStateMachine

Every failure aborts the current tick and is logged with enough context to
reconstruct the decision; the next tick starts from a clean slate.
"""

from datetime import datetime
from typing import Any, Optional

import structlog

from .config.defaults import DefaultConfig, get_default_config
from .context.session import SessionContext
from .errors import (
    CatalogError,
    ContextUnavailable,
    DataAbsenceError,
    FetchError,
    FlipEntryFailed,
    OrderGatewayError,
    RecoverableError,
)
from .execution.base import OrderResult
from .gating.time_gate import (
    LocalClock,
    TimeGate,
    is_candle_boundary,
    is_credential_refresh_tick,
)
from .instruments.catalog import InstrumentCatalog
from .logging.config import get_signal_logger, log_signal_decision
from .market.candles import CandleFetcher
from .persistence.trade_journal import TradeJournal
from .signals.engine import Signal, SignalKind, evaluate
from .state.machine import TradeStateMachine
from .state.models import TradeAction, TradeOutcome

logger = structlog.get_logger(__name__)
signal_logger = get_signal_logger(__name__)

# Journal action names for the orders of each outcome, in order
_JOURNAL_ACTIONS = {
    TradeAction.ENTER: ("enter",),
    TradeAction.EXIT: ("exit",),
    TradeAction.FLIP: ("flip_exit", "flip_enter"),
}


class TradingEngine:
    """
    Coordinator for one trading day of the CPR strategy.

    Owns the session context and the position state machine; the scheduler
    calls ``evaluate_tick`` once per second.
    """

    def __init__(
        self,
        session: SessionContext,
        fetcher: CandleFetcher,
        machine: TradeStateMachine,
        settings: Optional[DefaultConfig] = None,
        catalog: Optional[InstrumentCatalog] = None,
        journal: Optional[TradeJournal] = None,
    ) -> None:
        self.settings = settings or get_default_config()
        self.gate = TimeGate(self.settings.windows)
        self.session = session
        self.fetcher = fetcher
        self.machine = machine
        self.catalog = catalog
        self.journal = journal
        self.logger = logger

        self._catalog_attempt: Optional[tuple] = None

    def evaluate_tick(self, now: datetime) -> Optional[TradeOutcome]:
        """
        Evaluate a single scheduler tick.

        Args:
            now: Tick time (any timezone)

        Returns:
            TradeOutcome when a signal was applied, None otherwise
        """
        clock = self.gate.clock(now)
        windows = self.gate.classify(clock)
        if not windows.any_active:
            return None

        tick: dict[str, Any] = {"tick": clock.moment.isoformat()}

        try:
            if windows.preparation:
                self._prepare(clock)

            if windows.live and is_candle_boundary(clock, self.settings.candles.interval_minutes):
                return self._trade(clock, tick)

        except DataAbsenceError as e:
            self.logger.warning(
                "Tick skipped: data unavailable",
                error_type=type(e).__name__,
                error=str(e),
                **tick,
                context=e.context,
            )

        except FlipEntryFailed as e:
            self.logger.critical(
                "Position flattened without the intended entry; manual attention required",
                exited_symbol=e.exited_symbol,
                intended_symbol=e.intended_symbol,
                intended_direction=e.intended_direction,
                error=str(e),
                **tick,
            )

        except ContextUnavailable as e:
            self.logger.error(
                "Tick skipped: context store unavailable",
                operation=e.operation,
                error=str(e),
                **tick,
            )

        except (FetchError, OrderGatewayError, CatalogError) as e:
            self.logger.error(
                "Tick aborted: transient I/O failure",
                error_type=type(e).__name__,
                error=str(e),
                **tick,
            )

        except RecoverableError as e:
            self.logger.error(
                "Tick aborted: recoverable failure",
                error_type=type(e).__name__,
                error=str(e),
                **tick,
            )

        return None

    def _prepare(self, clock: LocalClock) -> None:
        """Preload the day's context; credentials are refreshed on cadence."""
        self.session.ensure_daily_levels(clock.trading_date)
        self.session.ensure_daily_asset(clock.trading_date, clock.weekday)
        self._refresh_catalog(clock)
        self.session.ensure_credentials(
            force_refresh=is_credential_refresh_tick(
                clock, self.settings.credentials.refresh_every_seconds
            )
        )

    def _refresh_catalog(self, clock: LocalClock) -> None:
        """Refresh the instrument catalog, at most one attempt per minute."""
        if self.catalog is None:
            return

        attempt_key = (clock.trading_date, clock.minute_of_day)
        if self.catalog.is_fresh(clock.trading_date) or self._catalog_attempt == attempt_key:
            return

        self._catalog_attempt = attempt_key
        try:
            self.catalog.ensure_fresh(clock.trading_date)
        except CatalogError as e:
            # A previous day's file may still resolve contracts
            self.logger.warning("Instrument catalog refresh failed", error=str(e))

    def _trade(self, clock: LocalClock, tick: dict[str, Any]) -> Optional[TradeOutcome]:
        levels = self.session.ensure_daily_levels(clock.trading_date)
        asset = self.session.ensure_daily_asset(clock.trading_date, clock.weekday)
        credentials = self.session.ensure_credentials()
        tick.update(asset=asset.name, levels=levels.as_dict())

        bar = self.fetcher.fetch_latest(asset.instrument_token, clock.moment, credentials)
        price = bar.close
        tick["price"] = price

        last_direction = self.machine.open_direction
        signal = evaluate(price, levels, last_direction, bar)
        tick.update(
            signal_kind=signal.kind.value,
            direction=signal.direction.value if signal.direction else None,
            position=self.machine.state.label,
        )

        if signal.kind is SignalKind.NO_ACTION:
            self.logger.debug("No action", **tick)
            return None

        log_signal_decision(
            signal_logger,
            kind=signal.kind.value,
            direction=signal.direction.value if signal.direction else None,
            price=price,
            reason=signal.reason,
            context={
                "strike": signal.strike,
                "position": self.machine.state.label,
                "bar_open": bar.open,
                "levels": levels.as_dict(),
            },
        )

        previous = self.machine.state
        try:
            outcome = self.machine.apply(signal, asset.name)
        except OrderGatewayError as e:
            if signal.kind is SignalKind.EXIT:
                action = "exit"
            elif previous.is_open:
                action = "flip_exit"
            else:
                action = "enter"
            self._journal_failure(signal, price, action, e.symbol, e.side, str(e))
            raise
        except FlipEntryFailed as e:
            if e.exit_result is not None:
                self._journal_order("flip_exit", e.exit_result, signal, price)
            self._journal_failure(signal, price, "flip_enter", e.intended_symbol, "BUY", str(e))
            raise

        for action, order in zip(_JOURNAL_ACTIONS.get(outcome.action, ()), outcome.orders):
            self._journal_order(action, order, signal, price)
        return outcome

    def _journal_order(self, action: str, order: OrderResult, signal: Signal,
                       price: float) -> None:
        if self.journal is None:
            return
        self.journal.record(
            action=action,
            status="success",
            symbol=order.symbol,
            direction=signal.direction.value if signal.direction else None,
            side=order.side.value,
            price=price,
            reason=signal.reason,
            order_id=order.order_id,
            order_tag=order.order_tag,
        )

    def _journal_failure(self, signal: Signal, price: float, action: str,
                         symbol: Optional[str], side: Optional[str], error: str) -> None:
        if self.journal is None:
            return
        self.journal.record(
            action=action,
            status="failed",
            symbol=symbol,
            direction=signal.direction.value if signal.direction else None,
            side=side,
            price=price,
            reason=signal.reason,
            error=error,
        )
