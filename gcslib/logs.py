import logging
from typing import Literal, overload, Any, TypeGuard

try:
    from pythonjsonlogger.json import JsonFormatter
except ImportError:
    raise ImportError('Please install python-json-logger or gcslib with "log" to use this module')

LogFormat = Literal["json", "console"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class GCSJsonFormatter(JsonFormatter):
    """JSON formatter stamping every record with the application version."""

    def __init__(self, version: str, *args, **kwargs):
        self.version: str = version
        super().__init__(*args, **kwargs)

    def add_fields(self, log_data: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]):
        super().add_fields(log_data, record, message_dict)

        log_data.pop("color_message", None)
        log_data.setdefault("logger", record.name)
        if not log_data.get("version"):
            log_data["version"] = self.version


@overload
def init_logging(
    log_format: Literal["json"],
    version: str,
    *,
    logger: logging.Logger | None = None,
    stream_handler: logging.StreamHandler | None = None,
) -> tuple[GCSJsonFormatter, logging.StreamHandler]: ...


@overload
def init_logging(
    log_format: Literal["console"],
    version: str,
    *,
    logger: logging.Logger | None = None,
    stream_handler: logging.StreamHandler | None = None,
) -> tuple[logging.Formatter, logging.StreamHandler]: ...


def init_logging(
    log_format: LogFormat,
    version: str,
    *,
    logger: logging.Logger | None = None,
    stream_handler: logging.StreamHandler | None = None,
):
    """
    Attach a formatted stream handler to `logger` (the "gcslib" logger by default).

    Token refreshes are logged at INFO, waits for a free slot at DEBUG and
    unexpected API statuses at WARNING.
    """
    _logger = logger or logging.getLogger("gcslib")
    _stream_handler = stream_handler or logging.StreamHandler()
    match log_format:
        case "json":
            formatter = GCSJsonFormatter(version, LOG_FORMAT, datefmt=DATE_FORMAT)
        case "console":
            formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        case _:
            raise NotImplementedError(f"Invalid log format {log_format!r}")

    _stream_handler.setFormatter(formatter)
    _logger.addHandler(_stream_handler)

    return formatter, _stream_handler


def is_valid_log_format(log_format: str) -> TypeGuard[LogFormat]:
    return log_format in {"json", "console"}
