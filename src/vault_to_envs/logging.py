"""Structured logging with secret redaction.

All records go to stderr. Stdout is reserved for the export lines, which
consumers evaluate verbatim as shell code.
"""

import json
import logging
import re
import sys
from typing import Any, Dict, Optional

LOGGER_NAME = "vault_to_envs"


class StructuredJSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with secret redaction."""

    def __init__(self, redact_secrets: bool = False):
        super().__init__()
        self.redact_secrets = redact_secrets
        # Patterns for common secret fields
        self.secret_patterns = [
            r'(password["\']?\s*[:=]\s*["\']?)([^"\'\s,]+)',
            r'(token["\']?\s*[:=]\s*["\']?)([^"\'\s,]+)',
            r'(secret_key["\']?\s*[:=]\s*["\']?)([^"\'\s,]+)',
            r'(access_key["\']?\s*[:=]\s*["\']?)([^"\'\s,]+)',
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with optional secret redaction."""
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "event_type"):
            log_data["event_type"] = record.event_type

        if hasattr(record, "vault_path"):
            log_data["vault_path"] = record.vault_path

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_str = json.dumps(log_data, default=str)
        if self.redact_secrets:
            for pattern in self.secret_patterns:
                log_str = re.sub(
                    pattern, r"\1[REDACTED]", log_str, flags=re.IGNORECASE
                )
        return log_str


def setup_logging(
    level: str = "INFO",
    redact_secrets: bool = False,
    stream: Optional[Any] = None,
) -> logging.Logger:
    """Set up structured JSON logging on stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        redact_secrets: Whether to redact secrets in logs
        stream: Stream for the handler (defaults to sys.stderr)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredJSONFormatter(redact_secrets=redact_secrets))
    logger.addHandler(handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional logger name (defaults to 'vault_to_envs')

    Returns:
        Logger instance
    """
    return logging.getLogger(name or LOGGER_NAME)


def mask_identifier(value: str, visible: int = 4) -> str:
    """Mask all but the last characters of an identifier for log output."""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
