"""
Internal diagnostics for orbi.

Components report non-fatal conditions with ``warn(component, message,
**fields)``; records are routed to the ``orbi.<component>`` logger with the
structured fields rendered as ``key=value`` pairs. Diagnostics must never
raise into the caller.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

_ROOT = "orbi"
_FORMAT = "%(levelname)s %(name)s: %(message)s"

_configured = False


def configure(level: str = "WARNING", *, stream: Any = None) -> None:
    """Attach a stderr handler to the ``orbi`` logger once per process."""
    global _configured
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level.upper())
    if _configured:
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True


def _render(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    parts = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
    return f"{message} {parts}" if parts else message


def _emit(level: int, component: str, message: str, fields: dict[str, Any]) -> None:
    try:
        logger = logging.getLogger(f"{_ROOT}.{component}")
        if logger.isEnabledFor(level):
            logger.log(level, _render(message, fields))
    except Exception:
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    _emit(logging.WARNING, component, message, fields)


def info(component: str, message: str, **fields: Any) -> None:
    _emit(logging.INFO, component, message, fields)


def debug(component: str, message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, component, message, fields)
