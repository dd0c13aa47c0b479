"""Exception types raised by the log shipper."""
from typing import Optional


class ShipperError(Exception):
    """Base class for log shipper errors."""


class ConfigError(ShipperError):
    """Raised when configuration values cannot be parsed."""


class TransportError(ShipperError):
    """
    Raised when a bulk flush fails.

    Covers both server rejections (status_code is set, body holds the
    drained error response) and network failures (status_code is None,
    the underlying exception is chained as __cause__).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
