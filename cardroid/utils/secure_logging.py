"""
Secure Logging - Logging with automatic sensitive data masking

This module provides:
- SensitiveDataFilter for masking credentials and customer data in logs
- configure_secure_logging() for global logging setup
- Patterns for the data this bot handles (gateway keys, Mongo URIs, DNI, phones)

Usage:
    from cardroid.utils.secure_logging import configure_secure_logging

    configure_secure_logging()
    logger.info("Enviando contrato a %s", numero)  # number is masked
"""

import re
import logging
import json
from typing import List, Tuple, Optional, Any, Dict
from logging import LogRecord, Filter, Formatter


# Each tuple: (compiled regex pattern, replacement string or callable)
SENSITIVE_PATTERNS: List[Tuple[re.Pattern, Any]] = [
    # Gateway API keys ("apikey: ..." headers or key=value pairs)
    (re.compile(r'(api[_-]?key|apikey)["\s:=]+["\']?([a-zA-Z0-9_-]{8,})["\']?', re.IGNORECASE), r'\1=[REDACTED]'),

    # Bearer/Auth tokens
    (re.compile(r'(Bearer\s+)[a-zA-Z0-9_.-]+', re.IGNORECASE), r'\1[TOKEN_REDACTED]'),

    # Passwords and secrets
    (re.compile(r'(password|passwd|pwd|secret|token)["\s:=]+["\']?([^\s"\']{4,})["\']?', re.IGNORECASE), r'\1=[REDACTED]'),

    # MongoDB URIs with credentials
    (re.compile(r'mongodb(\+srv)?://([^:]+):([^@]+)@'), r'mongodb\1://[USER]:[PASS]@'),

    # Sentry DSN keys
    (re.compile(r'https://[a-f0-9]{32}@'), 'https://[DSN_KEY]@'),

    # Phone numbers / WhatsApp ids: keep the last four digits
    (re.compile(r'\b(\+?\d{5,11})(\d{4})\b'), lambda m: '*' * len(m.group(1)) + m.group(2)),

    # Peruvian DNI (8 digits)
    (re.compile(r'\b\d{8}\b'), '[DNI]'),
]

_RESERVED_ATTRS = (
    'msg', 'args', 'name', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'taskName',
)


class SensitiveDataFilter(Filter):
    """
    Logging filter that masks sensitive data in log messages.

    Masks gateway keys, passwords, database URIs, DNI numbers and phone
    numbers (all but the last four digits).
    """

    def __init__(self, name: str = '', additional_patterns: Optional[List[Tuple[re.Pattern, Any]]] = None):
        super().__init__(name)
        self.patterns = SENSITIVE_PATTERNS.copy()
        if additional_patterns:
            self.patterns.extend(additional_patterns)

    def filter(self, record: LogRecord) -> bool:
        if record.msg:
            record.msg = self._mask_sensitive(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_sensitive(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(
                    self._mask_sensitive(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        for key, value in list(record.__dict__.items()):
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, str):
                setattr(record, key, self._mask_sensitive(value))
            elif isinstance(value, dict):
                setattr(record, key, self._mask_dict(value))

        return True

    def _mask_sensitive(self, text: str) -> str:
        if not text:
            return text
        result = text
        for pattern, replacement in self.patterns:
            result = pattern.sub(replacement, result)
        return result

    def _mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._mask_sensitive(value)
            elif isinstance(value, dict):
                result[key] = self._mask_dict(value)
            else:
                result[key] = value
        return result


class SecureFormatter(Formatter):
    """Text formatter with trace id column."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        include_trace_id: bool = True,
    ):
        if fmt is None:
            if include_trace_id:
                fmt = '%(asctime)s - %(name)s - %(levelname)s - [%(trace_id)s] - %(message)s'
            else:
                fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        super().__init__(fmt, datefmt)
        self.include_trace_id = include_trace_id

    def format(self, record: LogRecord) -> str:
        if self.include_trace_id and not hasattr(record, 'trace_id'):
            record.trace_id = '-'
        return super().format(record)


class JSONSecureFormatter(Formatter):
    """
    JSON log formatter.

    Outputs structured JSON logs suitable for log aggregation systems.
    """

    def format(self, record: LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if hasattr(record, 'trace_id'):
            log_data['trace_id'] = record.trace_id

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in ('message', 'trace_id') or key.startswith('_'):
                continue
            log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_secure_logging(
    level: int = logging.INFO,
    format_type: str = 'text',
    include_trace_id: bool = True,
    additional_patterns: Optional[List[Tuple[re.Pattern, Any]]] = None,
) -> None:
    """
    Configure logging globally with sensitive data masking.

    Args:
        level: Logging level
        format_type: 'text' for human-readable, 'json' for structured logs
        include_trace_id: Include trace_id in log output
        additional_patterns: Additional regex patterns to mask
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.addFilter(SensitiveDataFilter(additional_patterns=additional_patterns))

    if format_type == 'json':
        formatter: Formatter = JSONSecureFormatter()
    else:
        formatter = SecureFormatter(include_trace_id=include_trace_id)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


__all__ = [
    'SensitiveDataFilter',
    'SecureFormatter',
    'JSONSecureFormatter',
    'SENSITIVE_PATTERNS',
    'configure_secure_logging',
]
