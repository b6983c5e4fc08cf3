"""
Logging helpers: request correlation and redaction of sensitive values.

Callers attach structured data with ``extra={'context': {...}}``; the
filters below make sure every record carries a ``request_id`` and a
redacted ``context`` so that the formatters configured in settings can
rely on both attributes.
"""
from __future__ import annotations

import contextvars
import logging
from typing import Any

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='-')

SENSITIVE_KEYS = {'password', 'token', 'apikey', 'secret'}
REDACTED = '[REDACTED]'


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: (REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class RedactSensitiveFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, 'context', None)
        record.context = redact(context) if context else ''
        return True
