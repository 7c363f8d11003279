"""Logging configuration for the clapctl CLI.

Modules log through ``logging.getLogger(__name__)`` and attach structured
fields with ``extra={...}``. The CLI installs one stderr handler, either
JSON (one object per line) or human-readable text with secrets redacted.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone

STRUCTURED_FIELDS = (
    'stack_name',
    'action',
    'operation',
    'status',
    'version',
    'bucket',
)

_HANDLER_NAME = 'clapctl'


class RedactingFormatter(logging.Formatter):
    """Text formatter that masks passwords, tokens and AWS secret keys."""

    REDACT_PATTERNS = [
        (re.compile(r'(Bearer\s+)[^\s"\']+'), r'\1[REDACTED]'),
        (re.compile(r'(token[=:]\s*)[^\s,"\']+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(secret[_-]?(?:access[_-]?)?key[=:]\s*)[^\s,"\']+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(password["\']?\s*[=:]\s*["\']?)[^\s,"\']+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(AKIA|ASIA)[A-Z0-9]{16}'), r'\1[REDACTED]'),
    ]

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        for pattern, replacement in self.REDACT_PATTERNS:
            msg = pattern.sub(replacement, msg)
        return msg


class JSONFormatter(logging.Formatter):
    """Format records as JSON with standard and structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = dt.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'

        log_data = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value:
                log_data[field] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _resolve_level(level: str | int) -> int:
    """Map a level name or number to a logging level; unknown names fall back to WARNING."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.WARNING

def configure_logging(level: str | int = 'WARNING', *, json_output: bool = False) -> logging.Handler:
    """Install (or replace) the clapctl stderr handler on the root logger."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            RedactingFormatter(
                '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                datefmt='%H:%M:%S',
            )
        )
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    # botocore is chatty at INFO.
    logging.getLogger('botocore').setLevel(logging.WARNING)
    return handler
