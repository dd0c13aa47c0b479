"""Buffered bulk log shipping over HTTP."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bulk-log-shipper")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "0+unknown"

from .config import Settings, HttpRequestHeader, load_config
from .errors import ShipperError, TransportError, ConfigError
from .formatting import BulkRecordFormatter
from .handler import BulkLogHandler, create_writer
from .reporting import ErrorReporter
from .transmission import BulkWriter, SendBuffer

__all__ = [
    'Settings',
    'HttpRequestHeader',
    'load_config',
    'ShipperError',
    'TransportError',
    'ConfigError',
    'BulkRecordFormatter',
    'BulkLogHandler',
    'create_writer',
    'ErrorReporter',
    'BulkWriter',
    'SendBuffer',
]
