"""
Single-position trade state machine.

States are ``Flat`` and ``Open(direction, symbol)``. A flip is executed as an
exit followed by an entry; ``Flat`` is committed between the two so that a
failed entry never leaves a stale ``Open`` behind.
"""

from typing import Callable, Optional

from ..data.models import Instrument
from ..errors import FlipEntryFailed, InstrumentNotFound, OrderGatewayError
from ..execution.base import BaseOrderGateway
from ..logging.config import get_state_logger, log_state_transition
from ..signals.engine import Direction, Signal, SignalKind
from .models import FLAT, TradeAction, TradeOutcome, TradeState

state_logger = get_state_logger(__name__)

InstrumentResolver = Callable[[str, int, Direction], Optional[Instrument]]


class TradeStateMachine:
    """Holds the open position and turns signals into order actions."""

    def __init__(self, gateway: BaseOrderGateway, resolver: InstrumentResolver,
                 initial: TradeState = FLAT) -> None:
        self.gateway = gateway
        self.resolver = resolver
        self.state = initial
        self.logger = state_logger

    @property
    def open_direction(self) -> Optional[Direction]:
        return self.state.direction if self.state.is_open else None

    def apply(self, signal: Signal, asset_name: str) -> TradeOutcome:
        """
        Apply ``signal`` to the current position.

        Args:
            signal: Evaluated signal for this tick
            asset_name: Underlying symbol used to resolve the option contract

        Returns:
            TradeOutcome describing the action taken

        Raises:
            InstrumentNotFound: no contract for the signal's strike; state unchanged
            OrderGatewayError: an order failed; state reflects the last
                successful order only
            FlipEntryFailed: a flip exited but could not re-enter; state is Flat
        """
        if signal.kind is SignalKind.NO_ACTION:
            return TradeOutcome(TradeAction.NONE, self.state, self.state)

        if signal.kind is SignalKind.EXIT:
            return self._exit(signal)

        direction = signal.direction
        if not self.state.is_open:
            symbol = self._resolve(asset_name, signal.strike, direction)
            return self._enter(direction, symbol, signal, TradeAction.ENTER)

        if self.state.direction is direction:
            self.logger.debug(
                "Duplicate signal suppressed",
                state=self.state.label,
                signal_kind=signal.kind.value,
                reason=signal.reason,
            )
            return TradeOutcome(TradeAction.DUPLICATE_SUPPRESSED, self.state, self.state)

        return self._flip(direction, asset_name, signal)

    def _resolve(self, asset_name: str, strike: int, direction: Direction) -> str:
        instrument = self.resolver(asset_name, strike, direction)
        if instrument is None:
            self.logger.warning(
                "No tradable instrument found",
                asset=asset_name,
                strike=strike,
                option_type=direction.value,
            )
            raise InstrumentNotFound(
                f"No {direction.value} contract for {asset_name} {strike}",
                asset_symbol=asset_name,
                strike_price=strike,
                option_type=direction.value,
            )
        return instrument.instrument_key

    def _exit(self, signal: Signal) -> TradeOutcome:
        previous = self.state
        if not previous.is_open:
            self.logger.warning(
                "Exit signal without an open position",
                reason=signal.reason,
            )
            return TradeOutcome(TradeAction.UNEXPECTED_EXIT, previous, previous)

        # State stays Open if the exit order raises
        result = self.gateway.exit(previous.symbol)
        self.state = FLAT
        log_state_transition(
            self.logger,
            from_state=previous.label,
            to_state=self.state.label,
            trigger="exit",
            context={"reason": signal.reason, "order_id": result.order_id},
        )
        return TradeOutcome(TradeAction.EXIT, previous, self.state, (result,))

    def _enter(self, direction: Direction, symbol: str, signal: Signal,
               action: TradeAction) -> TradeOutcome:
        previous = self.state
        result = self.gateway.enter(symbol)
        self.state = TradeState.open(direction, symbol)
        log_state_transition(
            self.logger,
            from_state=previous.label,
            to_state=self.state.label,
            trigger=action.value,
            context={
                "reason": signal.reason,
                "strike": signal.strike,
                "order_id": result.order_id,
            },
        )
        return TradeOutcome(action, previous, self.state, (result,))

    def _flip(self, direction: Direction, asset_name: str, signal: Signal) -> TradeOutcome:
        previous = self.state
        new_symbol = self._resolve(asset_name, signal.strike, direction)

        exit_result = self.gateway.exit(previous.symbol)
        self.state = FLAT
        log_state_transition(
            self.logger,
            from_state=previous.label,
            to_state=self.state.label,
            trigger="flip_exit",
            context={"reason": signal.reason, "order_id": exit_result.order_id},
        )

        try:
            entry_result = self.gateway.enter(new_symbol)
        except OrderGatewayError as e:
            self.logger.critical(
                "Flip entry failed after exit; position is flat",
                exited_symbol=previous.symbol,
                intended_symbol=new_symbol,
                intended_direction=direction.value,
                error=str(e),
            )
            raise FlipEntryFailed(
                f"Exited {previous.symbol} but failed to enter {new_symbol}: {e}",
                exited_symbol=previous.symbol,
                intended_symbol=new_symbol,
                intended_direction=direction.value,
                exit_result=exit_result,
                context={"reason": signal.reason, "exit_order_id": exit_result.order_id},
            ) from e

        self.state = TradeState.open(direction, new_symbol)
        log_state_transition(
            self.logger,
            from_state=FLAT.label,
            to_state=self.state.label,
            trigger="flip_enter",
            context={
                "reason": signal.reason,
                "strike": signal.strike,
                "order_id": entry_result.order_id,
            },
        )
        return TradeOutcome(TradeAction.FLIP, previous, self.state, (exit_result, entry_result))
