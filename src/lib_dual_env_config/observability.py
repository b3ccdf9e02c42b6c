"""Structured logging helpers for credential and URL resolution.

Purpose
    Emit predictable, contextual diagnostics about configuration file access
    and credential resolution without leaking secrets and without forcing a
    logging backend on the host application.

Contents
    - ``CORRELATION_ID``: context variable holding the active correlation id.
    - ``get_logger``: returns the package logger (silent by default).
    - ``bind_correlation_id`` / ``new_correlation_id``: manage the id.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit structured entries.
    - ``make_event``: builds event payloads with secret fields masked.

System Integration
    The codec, classifier and resolver log through these helpers; the
    composition root binds a fresh correlation id per public call so every
    event of one resolution can be grouped downstream.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Final, Mapping

CORRELATION_ID: ContextVar[str | None] = ContextVar("lib_dual_env_config_correlation_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_dual_env_config")
_LOGGER.addHandler(logging.NullHandler())

_SECRET_MARKERS: Final[tuple[str, ...]] = ("password", "pass", "secret")
_MASK: Final[str] = "***"


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_correlation_id(correlation_id: str | None) -> None:
    """Bind or clear the active correlation id.

    Examples
    --------
    >>> bind_correlation_id('req-1')
    >>> CORRELATION_ID.get()
    'req-1'
    >>> bind_correlation_id(None)
    >>> CORRELATION_ID.get() is None
    True
    """

    CORRELATION_ID.set(correlation_id)


def new_correlation_id() -> str:
    """Bind and return a fresh random correlation id."""

    correlation_id = uuid.uuid4().hex
    bind_correlation_id(correlation_id)
    return correlation_id


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry."""

    _emit(logging.ERROR, message, fields)


def make_event(
    operation: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured payload for a configuration event.

    Fields whose name looks like a secret are masked.

    Examples
    --------
    >>> make_event('write', '.env', {'keys': 6})
    {'operation': 'write', 'path': '.env', 'keys': 6}
    >>> make_event('write', None, {'DB_PASS': 'hunter2'})['DB_PASS']
    '***'
    """

    event: dict[str, Any] = {"operation": operation, "path": path}
    if payload:
        event |= _mask_secrets(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    context = {"correlation_id": CORRELATION_ID.get()}
    context.update(_mask_secrets(fields))
    _LOGGER.log(level, message, extra={"context": context})


def _mask_secrets(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *fields* with secret-looking scalar values masked."""

    masked: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, Mapping):
            masked[key] = _mask_secrets(value)
        elif value and _is_secret(key):
            masked[key] = _MASK
        else:
            masked[key] = value
    return masked


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(lowered == marker or lowered.endswith(f"_{marker}") for marker in _SECRET_MARKERS)
