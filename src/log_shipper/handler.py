"""
logging.Handler that ships records in bulk.

Records are formatted on the logging thread and appended to a bounded
buffer; a background thread flushes the buffer on a fixed interval.
"""
import logging
import threading
from typing import Optional
import structlog

from .config import Settings
from .errors import TransportError
from .formatting import BulkRecordFormatter
from .reporting import ErrorReporter
from .transmission import BulkWriter, SendBuffer, build_proxy_endpoint

logger = structlog.get_logger()

# Records from these loggers are the shipper's own diagnostics
INTERNAL_LOGGER_PREFIX = "log_shipper"


def create_writer(settings: Settings, error_reporter: ErrorReporter) -> BulkWriter:
    """Build a buffer and the writer that drains it from settings."""
    buffer = SendBuffer(settings.max_queue_size, error_reporter)
    proxy = build_proxy_endpoint(
        settings.proxy_host,
        settings.proxy_port,
        settings.proxy_username,
        settings.proxy_password
    )
    return BulkWriter(
        buffer,
        settings.url,
        connect_timeout_s=settings.connect_timeout_s,
        read_timeout_s=settings.read_timeout_s,
        headers=settings.headers,
        authentication=settings.authentication,
        proxy=proxy,
        clear_on_connection_failure=settings.clear_on_connection_failure
    )


class BulkLogHandler(logging.Handler):
    """
    Buffering HTTP handler.

    Appends and flushes are serialised by one lock, so a flush blocks new
    records for at most the configured timeouts.
    """

    def __init__(
        self,
        settings: Settings,
        error_reporter: Optional[ErrorReporter] = None,
        writer: Optional[BulkWriter] = None,
        start: bool = True,
        level: int = logging.NOTSET
    ):
        """
        Args:
            settings: Shipper configuration
            error_reporter: Diagnostic sink (default: structlog backed)
            writer: Prebuilt writer, mostly for tests
            start: Start the background flusher immediately
            level: Handler level
        """
        super().__init__(level)
        self.settings = settings
        self.error_reporter = error_reporter or ErrorReporter()
        self.writer = writer or create_writer(settings, self.error_reporter)
        self.setFormatter(BulkRecordFormatter(settings.index, settings.include_caller_data))

        self._buffer_lock = threading.Lock()
        # Set while this thread holds _buffer_lock; records logged from
        # inside append/flush are dropped instead of deadlocking
        self._local = threading.local()
        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._closed = False

        if start:
            self.start()

    def start(self):
        """Start the background flusher thread."""
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self._flush_loop,
            daemon=True,
            name="log-shipper-flush"
        )
        self._thread.start()
        logger.info(
            "flusher_started",
            url=self.settings.url,
            interval_s=self.settings.flush_interval_s
        )

    def _flush_loop(self):
        while not self._shutdown_event.wait(timeout=self.settings.flush_interval_s):
            self._send_pending()

    def _send_pending(self):
        if getattr(self._local, 'busy', False):
            return
        with self._buffer_lock:
            self._local.busy = True
            try:
                if self.writer.has_pending_data():
                    self.writer.flush()
            except TransportError as e:
                self.error_reporter.log_error(
                    f"Failed to send events to {self.settings.url}", e
                )
            except Exception as e:
                self.error_reporter.log_error(
                    f"Unexpected error sending events to {self.settings.url}", e
                )
            finally:
                self._local.busy = False

    def is_internal(self, record: logging.LogRecord) -> bool:
        name = record.name
        return name == INTERNAL_LOGGER_PREFIX or name.startswith(INTERNAL_LOGGER_PREFIX + '.')

    def emit(self, record: logging.LogRecord):
        if getattr(self._local, 'busy', False) or self.is_internal(record):
            return

        try:
            text = self.format(record)
        except Exception:
            self.handleError(record)
            return

        with self._buffer_lock:
            self._local.busy = True
            try:
                self.writer.buffer.append(text)
            finally:
                self._local.busy = False

    def flush(self):
        """Synchronously send whatever is buffered."""
        self._send_pending()

    def close(self):
        if self._closed:
            return
        self._closed = True

        self._shutdown_event.set()
        if self._thread is not None:
            self._thread.join(timeout=sum(self.writer.timeout) + 1)
            self._thread = None

        self._send_pending()
        self.writer.close()
        logger.info("flusher_stopped", url=self.settings.url)
        super().close()
