"""
Logging setup for the valet CLI.

Text logging goes to stderr by default. JSON-formatted records are available
via VALET_LOG_FORMAT=json for piping into log collectors, and VALET_LOG_FILE
adds a file handler (e.g. ~/.valet/Log/valet.log).
"""

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_FIELDS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Outputs one JSON object per record with:
    - timestamp: ISO 8601 timestamp
    - level: Log level
    - logger: Logger name
    - message: Log message
    - file / function: Source location
    - exception: Formatted traceback, when present
    - any ``extra`` fields passed to the logger (e.g. command, host)
    """

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z"

        log_entry: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname:
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        if record.funcName and record.funcName != "<module>":
            log_entry["function"] = record.funcName

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_FIELDS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def is_json_logging_enabled() -> bool:
    """True if VALET_LOG_FORMAT=json"""
    return os.getenv("VALET_LOG_FORMAT", "text").lower() == "json"


def setup_logging(level: str | None = None, log_file: str | None = None, force: bool = True) -> None:
    """
    Configure the root logger from arguments or environment.

    Environment variables:
    - VALET_LOG_FORMAT: "json" or "text" (default: text)
    - VALET_LOG_LEVEL: Log level (default: WARNING)
    - VALET_LOG_FILE: Optional log file path

    Args:
        level: Override log level (uses VALET_LOG_LEVEL if None)
        log_file: Override log file (uses VALET_LOG_FILE if None)
        force: Force reconfiguration of root logger
    """
    if level is None:
        level = os.getenv("VALET_LOG_LEVEL", "WARNING")

    if log_file is None:
        log_file = os.getenv("VALET_LOG_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}", file=sys.stderr)

    if is_json_logging_enabled():
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=force)
