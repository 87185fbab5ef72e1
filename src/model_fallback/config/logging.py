# model_fallback/config/logging.py
"""
Logging setup for the ``model_fallback`` logger tree.

The library never touches the root logger. Applications that want
model-fallback output on stderr (or in a rotating file) call
:func:`setup_logging`; everything else flows through their own handlers.
Probe requests carry provider credentials, so every handler installed here
redacts them.
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from model_fallback.config.defaults import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES

LIBRARY_LOGGER = "model_fallback"

# Credentials a probe can carry: bearer headers and provider API keys
_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{10,}\b"), "[REDACTED_API_KEY]"),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{20,}\b"), "[REDACTED_API_KEY]"),
    (
        re.compile(r"((?:api[_-]?key|[?&]key)\s*[=:]\s*)['\"]?[^\s&'\"]+['\"]?", re.IGNORECASE),
        r"\1[REDACTED]",
    ),
]

_FORMATS = {
    "simple": "%(levelname)-8s %(name)s: %(message)s",
    "detailed": "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s",
    "json": (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "line": %(lineno)d, "message": "%(message)s"}'
    ),
}

# HTTP client loggers that narrate every probe
_HTTP_LOGGERS = ("httpx", "httpcore")

# Handlers installed by setup_logging, replaced on the next call
_installed: list[logging.Handler] = []


def redact_secrets(text: str) -> str:
    """Return ``text`` with bearer tokens and API keys masked."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Masks credentials in the fully formatted message of each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message or record.args:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: str = "WARNING",
    format_style: str = "simple",
    log_file: str | None = None,
) -> logging.Logger:
    """
    Send ``model_fallback`` log records to stderr and, optionally, a file.

    Calling it again replaces the handlers from the previous call; handlers
    an application attached itself are left alone. Records handled here do
    not propagate to the root logger.

    Args:
        level: Level name for the console (DEBUG, INFO, WARNING, ...)
        format_style: "simple", "detailed", or "json"
        log_file: Rotating JSON log at DEBUG level; ``~`` is expanded and
                  parent directories are created

    Returns:
        The configured library logger

    Raises:
        ValueError: If ``level`` or ``format_style`` is unknown
    """
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid log level: {level}")
    if format_style not in _FORMATS:
        raise ValueError(
            f"Invalid log format: {format_style} (expected one of {', '.join(_FORMATS)})"
        )

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    while _installed:
        handler = _installed.pop()
        library_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(log_level)
    _install(library_logger, console, _FORMATS[format_style])

    logger_level = log_level
    if log_file:
        _install(library_logger, _file_handler(log_file), _FORMATS["json"])
        logger_level = logging.DEBUG

    library_logger.setLevel(logger_level)
    library_logger.propagate = False

    http_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    return library_logger


def _install(logger: logging.Logger, handler: logging.Handler, fmt: str) -> None:
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(SecretRedactingFilter())
    logger.addHandler(handler)
    _installed.append(handler)


def _file_handler(log_file: str) -> RotatingFileHandler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        str(path),
        maxBytes=DEFAULT_LOG_MAX_BYTES,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    return handler
