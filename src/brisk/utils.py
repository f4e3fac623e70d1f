from __future__ import annotations

import os as _os

from typing import Optional

DEBUG_PY_TRACE_ENV = "BRISK_DEBUG_PY_TRACE"
THREADED_LEXER_ENV = "BRISK_THREADED_LEXER"

_FALSEY = {"", "0", "false", "no", "off"}


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean toggle from the environment; unset means `default`."""
    raw: Optional[str] = _os.environ.get(name)

    if raw is None:
        return default

    return raw.strip().lower() not in _FALSEY


def set_env_flag(name: str, enabled: bool) -> None:
    if enabled:
        _os.environ[name] = "1"
    else:
        _os.environ.pop(name, None)


def debug_py_trace_enabled() -> bool:
    """Show Python tracebacks alongside Brisk runtime errors."""
    return env_flag(DEBUG_PY_TRACE_ENV)


def threaded_lexer_enabled() -> bool:
    """Run the lexer on a producer thread instead of pulling tokens inline."""
    return env_flag(THREADED_LEXER_ENV)
