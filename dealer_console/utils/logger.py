"""
Logging for the dealer console.

Console logs go through ContextAwareLogger, which appends pipe-delimited
extras to the message. Structured copies can optionally be shipped to an
Azure Storage queue through AzureQueueHandler.
"""

import logging
import sys
import traceback
from datetime import datetime
from functools import partialmethod
from typing import Any, Dict, List, Optional, Union

from azure.storage.queue import QueueClient, QueueServiceClient

from ..config import get_config
from .json_utils import dumps

_console_logger = None

# LogRecord attributes that are never copied into the structured context
_RESERVED_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "dealer_id",
}


class ContextAwareLogger:
    """
    Wraps a stdlib logger so that extras are readable in plain console output.

    ``logger.info("Credential committed", extra={"dealer_id": "d1"})`` logs
    ``Credential committed | dealer_id=d1`` and still sets the extras on the
    record for structured handlers.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log(self, level: str, msg: str, extra: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        extra = extra or {}
        if extra:
            msg = " | ".join([msg, *(f"{k}={v}" for k, v in extra.items())])

        # Keys that collide with LogRecord attributes would make logging raise
        record_extra = {
            (f"_{k}" if k in _RESERVED_RECORD_FIELDS else k): v for k, v in extra.items()
        }
        getattr(self.logger, level)(msg, extra=record_extra, **kwargs)

    debug = partialmethod(log, "debug")
    info = partialmethod(log, "info")
    warning = partialmethod(log, "warning")
    error = partialmethod(log, "error")
    exception = partialmethod(log, "exception")


class DealerContextFilter(logging.Filter):
    """Logging filter that stamps the current dealer ID on log records."""

    def filter(self, record):
        # Lazy import, the context package imports this module
        from ..context.dealer_context import DealerContext

        dealer_id = DealerContext.get_current_dealer_id()
        if dealer_id:
            record.dealer_id = dealer_id

        return True


class AzureQueueHandler(logging.Handler):
    """
    Logging handler that sends structured log entries to an Azure Storage queue.

    Entries are buffered and sent one message per entry once ``batch_size``
    records have accumulated, or on flush/close.
    """

    def __init__(
        self,
        queue_name: str = "logs-queue",
        connection_string: Optional[str] = None,
        batch_size: int = 10,
    ):
        """
        Initialize the Azure Queue handler.

        Args:
            queue_name: Name of the queue to send logs to
            connection_string: Azure Storage connection string
            batch_size: Number of logs to batch before sending
        """
        super().__init__()
        self.queue_name = queue_name
        self.connection_string = connection_string or get_config().queue.connection_string
        self.batch_size = batch_size
        self.log_buffer: List[Dict[str, Any]] = []

        if not self.connection_string:
            sys.stderr.write("Azure Storage connection string not provided\n")
            return

        try:
            self._ensure_queue_exists()
        except Exception as e:
            sys.stderr.write(f"Failed to ensure queue exists: {str(e)}\n")

    def _ensure_queue_exists(self) -> bool:
        """Create the queue if it does not exist yet."""
        if not self.connection_string:
            return False

        queue_service = QueueServiceClient.from_connection_string(self.connection_string)
        queues = queue_service.list_queues()
        if not any(queue.name == self.queue_name for queue in queues):
            sys.stderr.write(f"Queue '{self.queue_name}' does not exist. Creating...\n")
            queue_service.create_queue(self.queue_name)
        return True

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert a LogRecord into the structured queue payload."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "dealer_id"):
            log_entry["dealer_id"] = record.dealer_id

        context = {}
        for key, value in record.__dict__.items():
            if key.startswith("__") or callable(value):
                continue
            if key.startswith("_") and value is not None:
                context[key[1:]] = value
            elif key not in _RESERVED_RECORD_FIELDS:
                context[key] = value

        if context:
            log_entry["context"] = context

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": [
                    line.rstrip() for line in traceback.format_exception(*record.exc_info)
                ],
            }

        return log_entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.log_buffer.append(self.build_entry(record))
            if len(self.log_buffer) >= self.batch_size:
                self.flush()
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Send any buffered log records to the queue."""
        if not self.log_buffer or not self.connection_string:
            return

        try:
            queue_client = QueueClient.from_connection_string(
                conn_str=self.connection_string, queue_name=self.queue_name
            )

            for log_entry in self.log_buffer:
                try:
                    queue_client.send_message(dumps(log_entry))
                except Exception as log_error:
                    sys.stderr.write(f"Error sending individual log entry: {str(log_error)}\n")

            self.log_buffer.clear()

        except Exception as e:
            sys.stderr.write(f"Error sending logs to Azure Queue: {str(e)}\n")

    def close(self) -> None:
        """Flush any remaining logs before closing."""
        self.flush()
        super().close()


def configure_logging(
    app_name: str = "dealer_console",
    log_level: Optional[Union[int, str]] = None,
    enable_queue: Optional[bool] = None,
    queue_name: Optional[str] = None,
    queue_batch_size: int = 10,
    connection_string: Optional[str] = None,
) -> ContextAwareLogger:
    """
    Configure console logging and, optionally, queue logging.

    Args:
        app_name: Logger name suffix
        log_level: Logging level (default: from config.logging.level)
        enable_queue: Ship logs to Azure (default: from config.features.enable_logs_queue)
        queue_name: Queue to send logs to (default: from config.queue.logs_queue_name)
        queue_batch_size: Number of logs to batch before sending
        connection_string: Azure Storage connection string (default: from config)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _console_logger

    app_config = get_config()

    if log_level is None:
        log_level = app_config.logging.level
    if enable_queue is None:
        enable_queue = app_config.features.enable_logs_queue
    if connection_string is None:
        connection_string = app_config.queue.connection_string
    if queue_name is None:
        queue_name = app_config.queue.logs_queue_name

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"app.{app_name}")
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    dealer_filter = DealerContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(dealer_filter)
    logger.addHandler(console_handler)

    if enable_queue:
        queue_handler = AzureQueueHandler(
            queue_name=queue_name, connection_string=connection_string, batch_size=queue_batch_size
        )
        queue_handler.setLevel(log_level)
        queue_handler.addFilter(dealer_filter)
        logger.addHandler(queue_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.info(
        "Logger configured",
        extra={
            "app_name": app_name,
            "queue_logging": enable_queue,
            "queue_name": queue_name if enable_queue else None,
        },
    )
    _console_logger = wrapped_logger
    return wrapped_logger


def reset_logging() -> None:
    """Forget the configured logger so get_logger falls back to the root logger."""
    global _console_logger
    _console_logger = None


def get_logger(log_level: Optional[Union[int, str]] = None) -> ContextAwareLogger:
    """
    Get the configured console logger.

    Falls back to a wrapped root logger when configure_logging has not run.
    """
    if _console_logger is not None:
        return _console_logger

    logger = logging.getLogger()

    if log_level is None:
        log_level = get_config().logging.level
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    return ContextAwareLogger(logger)
