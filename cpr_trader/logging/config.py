"""
Centralized logging configuration for the CPR trading engine.

Every decision the engine takes (signal, order action, skipped tick) is
logged through structlog so a trading day can be reconstructed from the log
stream alone. Broker secrets never reach the output: ``mask_credentials``
runs ahead of the renderer.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, FilteringBoundLogger, Processor

SENSITIVE_KEYS = frozenset({"access_token", "api_key", "authorization", "token"})
MASK = "***"


def _masked(values: dict[str, Any]) -> dict[str, Any]:
    result = {}
    for key, value in values.items():
        if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            result[key] = MASK
        elif isinstance(value, dict):
            result[key] = _masked(value)
        else:
            result[key] = value
    return result


def mask_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor replacing credential values, including inside nested context dicts."""
    return _masked(event_dict)


def build_processors(
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None,
) -> list[Processor]:
    """Processor chain for the engine; the renderer is always last."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.MODULE,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    processors.extend([
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        *(extra_processors or []),
        mask_credentials,
    ])

    if format_json:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None
) -> None:
    """
    Configure structlog and the stdlib root logger for the process.

    Safe to call again: the root handler is replaced, not duplicated.

    Raises:
        ValueError: ``level`` is not a logging level name
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s", force=True)

    structlog.configure(
        processors=build_processors(format_json, include_timestamp, include_caller,
                                    extra_processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_signal_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for signal decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for signal evaluation
    """
    return get_logger(name).bind(
        subsystem="signals",
        audit_trail=True
    )


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for position state transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    return get_logger(name).bind(
        subsystem="state_machine",
        audit_trail=True
    )


def log_signal_decision(
    logger: FilteringBoundLogger,
    kind: str,
    direction: Optional[str],
    price: float,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a signal decision with standardized format.

    Args:
        logger: Structlog logger instance
        kind: Signal kind (Buy, Sell, Exit, No Action)
        direction: CE, PE or None
        price: Price the decision was taken on
        reason: Human readable reason
        context: Additional context data (level values, open position)
    """
    bound_logger = logger.bind(
        signal_kind=kind,
        direction=direction,
        price=price,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("signal_decision")


def log_state_transition(
    logger: FilteringBoundLogger,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a position state transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("state_transition")
