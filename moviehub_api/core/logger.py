import logging
import sys
from logging.handlers import QueueHandler, QueueListener
from queue import Queue
from typing import Union

from pythonjsonlogger import jsonlogger

from moviehub_api.core.config import settings
from moviehub_api.core.trace import get_trace_id, get_user_id

LOG_FIELDS = (
    "asctime", "levelname", "name", "message", "module", "lineno",
    "trace_id", "user_id", "service", "env",
)


class RequestContextFilter(logging.Filter):
    """Stamp request context on every record; explicit extras win."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = (getattr(record, "trace_id", None)
                           or get_trace_id() or "-")
        record.user_id = (getattr(record, "user_id", None)
                          or get_user_id() or "-")
        record.service = getattr(record, "service", None) or settings.app_name
        record.env = getattr(record, "env", None) or settings.env
        return True


def json_formatter() -> jsonlogger.JsonFormatter:
    return jsonlogger.JsonFormatter(
        " ".join(f"%({field})s" for field in LOG_FIELDS))


_listener: QueueListener | None = None


def setup_json_logging(service: str = "moviehub_votes",
                       level: Union[int, str] = logging.INFO) -> None:
    global _listener
    if _listener is not None:
        # lifespan may run more than once in a test session
        shutdown_logging()

    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    out = logging.StreamHandler(sys.stdout)
    out.setFormatter(json_formatter())

    records: Queue = Queue(-1)
    queue_handler = QueueHandler(records)
    # context vars must be read before the record crosses threads
    queue_handler.addFilter(RequestContextFilter())

    _listener = QueueListener(records, out, respect_handler_level=True)
    _listener.start()
    root.handlers = [queue_handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv = logging.getLogger(name)
        uv.handlers = []
        uv.propagate = True

    logging.getLogger(__name__).info(
        "logger_initialized",
        extra={"service": service, "level": logging.getLevelName(
            root.level)})


def shutdown_logging() -> None:
    """Flush and stop the queue listener."""
    global _listener
    if _listener:
        _listener.stop()
        _listener = None
