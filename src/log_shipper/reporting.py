"""
Diagnostic sink for the shipper's own problems.

Messages go to a structlog logger, never back into the shipping handler.
"""
from typing import Optional
import structlog

logger = structlog.get_logger()


class ErrorReporter:
    """Fire-and-forget warning/info notifications."""

    def __init__(self, name: str = "log_shipper"):
        self.name = name

    def log_warning(self, message: str) -> None:
        logger.warning("shipper_diagnostic", reporter=self.name, message=message)

    def log_info(self, message: str) -> None:
        logger.info("shipper_diagnostic", reporter=self.name, message=message)

    def log_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        logger.error(
            "shipper_diagnostic",
            reporter=self.name,
            message=message,
            error=str(exc) if exc is not None else None
        )
