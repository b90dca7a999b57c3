"""
Logging infrastructure for zurefs.

Every module logs through ``logging.getLogger(__name__)``, so all records end
up under the ``zurefs`` logger. ``setup_logging`` attaches console and
optional rotating-file handlers to that logger only; the host application's
root logger is left alone. Records pass a redaction filter before they are
written, since signed request traces carry SharedKey signatures.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from zurefs.core.config_manager import LoggingConfig

PACKAGE_LOGGER = "zurefs"

REDACTED = "***REDACTED***"


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from the rendered log message."""

    PATTERNS = [
        # Authorization: SharedKey account:signature
        (re.compile(r'(SharedKey\s+[^:\s]+:)\S+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(Authorization:\s+)\S+(\s+\S+)?', re.IGNORECASE), r'\1' + REDACTED),
        # Connection strings
        (re.compile(r'(AccountKey=)[^;]+', re.IGNORECASE), r'\1' + REDACTED),
        # Dumped configuration
        (re.compile(r'(account_key["\']?\s*[:=]\s*["\']?)[^"\',\s]+', re.IGNORECASE), r'\1' + REDACTED),
        # SAS query strings
        (re.compile(r'(sig=)[^;&]+', re.IGNORECASE), r'\1' + REDACTED),
    ]

    @classmethod
    def redact(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Render %-style args first so secrets passed as arguments are caught too
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message or record.args:
            record.msg = redacted
            record.args = ()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    Human-readable formatter.

    Context attached with log_with_context is appended as ``key=value`` pairs:

        2025-01-03 09:15:00 [DEBUG] zurefs.storage.transport: GET /photos -> 200 (status_code=200)
    """

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items() if value is not None)
        head, newline, tail = line.partition("\n")
        return f"{head} ({pairs}){newline}{tail}"


_SIZE_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*([KMG]?B)?')
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def _parse_size(size_str: str) -> int:
    """
    Parse a rotation size such as "10MB" or "1.5 KB" into bytes.

    Raises:
        ValueError: If the string is not a number with an optional B/KB/MB/GB unit
    """
    match = _SIZE_PATTERN.fullmatch(size_str.strip().upper())
    if match is None:
        raise ValueError(f"Invalid size: {size_str!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit])


def _build_handlers(
    formatter: logging.Formatter,
    log_file: Optional[str],
    rotation_size: str,
    rotation_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding='utf-8',
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter())
    return handlers


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None,
) -> logging.Logger:
    """
    Configure the zurefs package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Package log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_file: Optional file path; rotated at rotation_size
        rotation_size: Size limit per log file (e.g., "10MB")
        rotation_count: Number of rotated files to keep
        module_levels: Per-module overrides,
                      e.g., {"zurefs.storage.transport": "DEBUG"}

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    for handler in _build_handlers(formatter, log_file, rotation_size, rotation_count):
        package_logger.addHandler(handler)

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(module_level.upper())

    package_logger.debug(
        f"Logging configured: level={level}, format={format_type}, file={log_file or '-'}"
    )
    return package_logger


def setup_logging_from_config(config: LoggingConfig) -> logging.Logger:
    """Configure logging from the ``logging`` section of a ZureFSConfig."""
    return setup_logging(
        level=config.level,
        format_type=config.format,
        log_file=config.file,
        rotation_size=config.rotation_size,
        rotation_count=config.rotation_count,
        module_levels=config.module_levels,
    )


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with structured context.

    The context travels on the record as ``record.context`` and is rendered by
    both formatters.
    """
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
