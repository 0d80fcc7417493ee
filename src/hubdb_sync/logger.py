import json
import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
FILE_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured log output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(log_format: str, text_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    return logging.Formatter(text_format, datefmt=DATE_FORMAT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging for a sync or cleanup run.

    Logs always go to stderr so stdout stays free for the run summary.
    When *log_file* is given, records are also appended to that file.

    Args:
        debug: If True, overrides every other level setting with DEBUG.
        log_file: Optional log file path (overrides LOG_FILE env var).
        log_format: "text" (default) or "json" for structured output.
        level: Level name from the config file, used when LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO.
        LOG_FILE: Log file path when *log_file* is not given.
    """
    env_level = os.getenv("LOG_LEVEL", level or "INFO").upper()

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(log_format, LOG_FORMAT))
    handlers.append(stderr_handler)

    final_log_file = log_file or os.getenv("LOG_FILE")
    if final_log_file:
        file_handler = logging.FileHandler(final_log_file, mode="a")
        file_handler.setFormatter(
            _make_formatter(log_format, FILE_LOG_FORMAT)
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
    )

    # Silence third-party libs unless DEBUG
    if log_level != logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)
