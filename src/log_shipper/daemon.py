"""
Log shipper daemon.

Reads text lines from a stream (stdin by default), turns each line into a
log record and ships the records in bulk:
1. A reader thread formats and buffers each line
2. The handler's flusher thread posts the buffer on a fixed interval
3. SIGTERM/SIGINT or end of input trigger a final flush and exit
"""
import logging
import os
import signal
import sys
import threading
from typing import Optional, TextIO
import structlog

from . import __version__
from .config import Settings, load_config
from .handler import BulkLogHandler

logger = structlog.get_logger()


class ShipperDaemon:
    """
    Ships lines read from a text stream.

    Each line becomes an INFO record of the logger named by `source`.
    """

    def __init__(
        self,
        settings: Settings,
        stream: Optional[TextIO] = None,
        source: str = "stdin",
        handler: Optional[BulkLogHandler] = None
    ):
        self.settings = settings
        self.stream = stream if stream is not None else sys.stdin
        self.source = source
        self.handler = handler or BulkLogHandler(settings, start=False)
        self.running = False
        self.lines_read = 0
        self._shutdown_event = threading.Event()
        self._reader_thread: Optional[threading.Thread] = None

    def start(self, install_signal_handlers: bool = True):
        """
        Start shipping and block until shutdown or end of input.
        """
        logger.info(
            "shipper_starting",
            url=self.settings.url,
            max_queue_size=self.settings.max_queue_size,
            flush_interval_s=self.settings.flush_interval_s
        )

        if install_signal_handlers:
            signal.signal(signal.SIGTERM, self._handle_shutdown)
            signal.signal(signal.SIGINT, self._handle_shutdown)

        self.running = True
        self.handler.start()
        self._start_reader_thread()

        while not self._shutdown_event.wait(timeout=1.0):
            pass
        logger.info("shipper_loop_stopped", lines=self.lines_read)

    def _start_reader_thread(self):
        def reader_worker():
            logger.info("reader_thread_started", source=self.source)
            try:
                for line in self.stream:
                    if self._shutdown_event.is_set():
                        break
                    self.ship_line(line)
            except Exception as e:
                logger.error("reader_thread_error", error=str(e))
            finally:
                self._shutdown_event.set()

        self._reader_thread = threading.Thread(
            target=reader_worker,
            daemon=True,
            name="log-reader"
        )
        self._reader_thread.start()

    def ship_line(self, line: str):
        """Wrap one input line in a log record and buffer it."""
        text = line.rstrip('\r\n')
        if not text:
            return

        record = logging.makeLogRecord({
            'name': self.source,
            'msg': text,
            'levelno': logging.INFO,
            'levelname': logging.getLevelName(logging.INFO),
        })
        self.handler.handle(record)
        self.lines_read += 1

    def _handle_shutdown(self, signum, frame):
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        sig_name = signal.Signals(signum).name
        logger.info("shutdown_signal_received", signal=sig_name)
        self.running = False
        self._shutdown_event.set()

    def stop(self):
        """Stop reading and flush what is left."""
        logger.info("shipper_stopping")
        self.running = False
        self._shutdown_event.set()
        self.handler.close()
        logger.info("cleanup_complete", lines=self.lines_read)


def configure_logging():
    """Structured JSON logs on stdout for the shipper's own events."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True
    )


def main(config_path: Optional[str] = None):
    """
    Main entry point.

    Args:
        config_path: Path to configuration file; defaults to the first
            command line argument, then LOG_SHIPPER_CONFIG_PATH
    """
    if config_path is None:
        if len(sys.argv) > 1:
            config_path = sys.argv[1]
        else:
            config_path = os.environ.get('LOG_SHIPPER_CONFIG_PATH')

    configure_logging()

    logger.info("log_shipper_starting", version=__version__)

    config = load_config(config_path)

    if not config.url:
        logger.error("url_required")
        sys.exit(1)

    daemon = ShipperDaemon(config)

    try:
        daemon.start()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
    except Exception as e:
        logger.error("shipper_failed", error=str(e))
        sys.exit(1)
    finally:
        daemon.stop()

    logger.info("log_shipper_stopped")
