"""
Transient I/O error classifications.

Network failures against the market data API, the order gateway or the
instrument catalog host. The tick that hit them is aborted without changing
position state.
"""

from typing import Optional, Dict, Any


class RecoverableError(Exception):
    """Base class for transient failures retried on a later tick."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 retry_count: int = 0, **kwargs):
        super().__init__(message)
        self.context = context or {}
        self.retry_count = retry_count
        self.recoverable = True


class FetchError(RecoverableError):
    """Market data request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_body: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body


class OrderGatewayError(RecoverableError):
    """Order placement failed at the execution gateway.

    ``retryable`` is False for rejections (4xx) that must not be resubmitted.
    """

    def __init__(self, message: str, symbol: Optional[str] = None,
                 side: Optional[str] = None, retryable: bool = True,
                 status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol
        self.side = side
        self.retryable = retryable
        self.status_code = status_code


class CatalogError(RecoverableError):
    """Instrument catalog download or parse failed."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source
