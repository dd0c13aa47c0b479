"""
In-memory send buffer with a size threshold.

Once the threshold is crossed every further append is dropped until the
buffer is cleared. Memory use is bounded by max_size plus one record.
"""
import io

from ..reporting import ErrorReporter

OVERFLOW_WARNING = (
    "Send queue maximum size exceeded - log messages will be lost "
    "until the buffer is cleared"
)
RECOVERY_INFO = "Send queue cleared - log messages will no longer be lost"


class SendBuffer:
    """
    Append-only text accumulator owning the overflow flag.

    Not thread-safe; callers serialise append() against the flush that
    reads and clears it.
    """

    def __init__(self, max_size: int, error_reporter: ErrorReporter):
        """
        Args:
            max_size: Threshold in characters at which overflow is set
            error_reporter: Sink for overflow/recovery notifications
        """
        self.max_size = max_size
        self._reporter = error_reporter
        self._content = io.StringIO()
        self._length = 0
        self._overflowed = False

    @property
    def overflowed(self) -> bool:
        return self._overflowed

    def append(self, text: str) -> None:
        if self._overflowed or not text:
            return

        self._content.write(text)
        self._length += len(text)

        if self._length >= self.max_size:
            self._reporter.log_warning(OVERFLOW_WARNING)
            self._overflowed = True

    def has_pending_data(self) -> bool:
        return self._length != 0

    def get_value(self) -> str:
        return self._content.getvalue()

    def clear(self) -> None:
        self._content = io.StringIO()
        self._length = 0

        if self._overflowed:
            self._reporter.log_info(RECOVERY_INFO)
            self._overflowed = False

    def __len__(self) -> int:
        return self._length
