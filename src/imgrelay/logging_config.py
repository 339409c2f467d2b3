"""
Logging configuration for imgrelay.

Provides structured logging with verbosity levels. Logging is configured lazily
so library users who never call set_verbosity or configure_logging get no
logs unless they configure logging themselves.

Verbosity levels:
- 0 (default): INFO, requests, provider calls and timings only
- 1 (info): INFO plus prompt text
- 2 (verbose): DEBUG plus prompt text, request payloads, poll attempts, etc.

Use set_verbosity(level) or configure_logging(verbose_level, quiet).
IMGRELAY_VERBOSITY env (0/1/2) is read when the CLI runs or when
configure_logging is called; CLI flags override env.
"""

import logging
import os
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "imgrelay"

# Strings at least this long in logged payloads are replaced by a placeholder
_TRUNCATE_THRESHOLD = 200
_NEVER_TRUNCATE_KEYS = frozenset({"prompt", "inputs", "text", "message"})

_log_prompts: bool = False
_configured: bool = False


def truncate_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64/data URI strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: truncate_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [truncate_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _TRUNCATE_THRESHOLD:
        if parent_key in _NEVER_TRUNCATE_KEYS:
            return obj
        if obj.startswith("data:"):
            return f"<data URI, {len(obj)} chars>"
        return f"<string, {len(obj)} chars>"
    if isinstance(obj, (bytes, bytearray)):
        return f"<binary, {len(obj)} bytes>"
    return obj


def mask_secret(value: str | None) -> str:
    """Return a display-safe form of a credential: only its length is revealed."""
    if not value:
        return "<unset>"
    return f"<set, {len(value)} chars>"


def _ensure_handler() -> None:
    """Add a stderr handler to the root imgrelay logger if not already present."""
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    _configured = True


def set_verbosity(level: int) -> None:
    """
    Set logging verbosity (0=default, 1=info, 2=verbose).

    - 0: INFO level; activity and performance only (no prompt text).
    - 1: INFO level; same + log prompt text.
    - 2: DEBUG level; same + request/response detail (no secrets).
    """
    global _log_prompts
    _ensure_handler()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if level <= 0:
        root.setLevel(logging.INFO)
        _log_prompts = False
    elif level == 1:
        root.setLevel(logging.INFO)
        _log_prompts = True
    else:
        root.setLevel(logging.DEBUG)
        _log_prompts = True


def log_prompts() -> bool:
    """Return True if prompt text should be logged at INFO (verbosity 1 or 2)."""
    return _log_prompts


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """
    Configure logging from CLI, server or library.

    When quiet is True, sets level to WARNING (no activity/performance).
    Otherwise calls set_verbosity(verbose_level).
    """
    global _log_prompts
    _ensure_handler()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if quiet:
        root.setLevel(logging.WARNING)
        _log_prompts = False
        return
    set_verbosity(verbose_level)


def get_verbosity_from_env() -> int:
    """
    Read IMGRELAY_VERBOSITY from environment (0, 1, or 2).

    Invalid or missing values return 0.
    """
    raw = os.environ.get("IMGRELAY_VERBOSITY", "0").strip()
    if raw == "1":
        return 1
    if raw == "2":
        return 2
    return 0


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under imgrelay (e.g. imgrelay.core.dispatcher)."""
    if name.startswith(ROOT_LOGGER_NAME + ".") or name == ROOT_LOGGER_NAME:
        return logging.getLogger(name)
    return logging.getLogger(ROOT_LOGGER_NAME + "." + name)


__all__ = [
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_prompts",
    "mask_secret",
    "set_verbosity",
    "truncate_for_log",
]
