import json
import logging
import os
import queue
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict

# Attributes passed through `extra=` that are copied into the JSON output.
CONTEXT_FIELDS = ("route", "status_code", "request_id")


class JsonFormatter(logging.Formatter):
    """Logging formatter that outputs JSON-formatted records.

    The formatter serializes key information from LogRecord into a compact
    JSON string. It includes level, message, logger name and a timestamp,
    plus any request context (see `CONTEXT_FIELDS`) attached through
    `extra=`. If exception information is present it is included under the
    `exception` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False, default=str)


def get_logger(name: str = "city_explorer") -> logging.Logger:
    """Return a logger which serializes records to JSON via a queue listener.

    The first call for a given name attaches a QueueHandler whose
    QueueListener formats records on a background thread, so log emission
    does not block the request. Later calls return the same logger without
    stacking more handlers.

    Args:
        name (str): Logger name (defaults to "city_explorer").

    Returns:
        logging.Logger: Configured logger instance with JSON formatting.
    """
    logger = logging.getLogger(name)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    if any(isinstance(h, QueueHandler) for h in logger.handlers):
        return logger

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter())

    queue_handler = QueueHandler(log_queue)
    listener = QueueListener(log_queue, stream_handler)
    listener.start()

    logger.addHandler(queue_handler)
    logger.propagate = False

    return logger
