"""
Logging setup for the API server and the terminal client.

Production writes one JSON object per line; development gets short coloured
lines. Records are tagged with the id of the HTTP request being served, and
``log_dir`` adds rotating files (everything, plus an errors-only file).
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Set by the request-id middleware in quizcraft.main; "-" outside a request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# Third-party loggers that are chatty at INFO (one line per HTTP call).
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "huggingface_hub", "urllib3")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger [request] message`` with the level coloured."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        line = (
            f"{self.formatTime(record, '%H:%M:%S')} "
            f"{color}{record.levelname:<8}{self.RESET} {record.name}"
        )
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            line += f" [{request_id}]"
        line += f" {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIDFilter())
    return handler


def setup_logging(
    environment: str = "development",
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        environment: "production" selects JSON output on stdout
        log_level: Root level name; unknown names fall back to INFO
        log_dir: Directory for rotating log files (None = stdout only)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(JSONFormatter() if environment == "production" else ConsoleFormatter())
    stream.addFilter(RequestIDFilter())
    root.addHandler(stream)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler(log_dir / "quizcraft.log", logging.NOTSET))
        root.addHandler(_file_handler(log_dir / "quizcraft-errors.log", logging.ERROR))

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: environment=%s level=%s files=%s",
        environment, logging.getLevelName(level), log_dir or "off",
    )
