"""
Vesting ledger - Structured Logging

JSON log format for easy parsing. Ledger modules log through plain
``logging.getLogger(__name__)`` loggers and attach structured fields with
``extra={"event": ..., ...}``; this module turns those into JSON lines.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

PACKAGE_LOGGER = "vestledger"


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs logs in JSON format

    Features:
    - Structured JSON output
    - UTC timestamps
    - Custom fields passed through ``extra``
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    stream: Optional[Any] = None,
) -> logging.Logger:
    """
    Install a single handler on the package logger.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Emit one JSON object per line instead of plain text
        stream: Output stream, defaults to stderr

    Returns:
        The configured package logger
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Prevent duplicate handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    logger.addHandler(handler)
    return logger
