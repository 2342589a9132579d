"""
System failure error classifications.

These represent conditions that either prevent the process from starting or
leave the account in a state an operator has to look at.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for failures that need more than skipping a tick."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ContextUnavailable(SystemFailureError):
    """The trading-day context store cannot be reached.

    Fatal during bootstrap; after scheduling has started the tick is skipped.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class FlipEntryFailed(SystemFailureError):
    """A flip exited the old position but could not open the new one.

    The position is flat at this point, without the intended exposure.
    ``exit_result`` is the accepted exit order.
    """

    def __init__(self, message: str, exited_symbol: Optional[str] = None,
                 intended_symbol: Optional[str] = None,
                 intended_direction: Optional[str] = None,
                 exit_result: Optional[Any] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.exited_symbol = exited_symbol
        self.intended_symbol = intended_symbol
        self.intended_direction = intended_direction
        self.exit_result = exit_result


class ConfigError(SystemFailureError):
    """Configuration failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
