from __future__ import annotations

import os as _os
from typing import Optional

_TRUTHY_VALUES = {"1", "true", "yes", "on"}

DEFAULT_NODE = "node"
DEFAULT_MAX_SUGAR_PASSES = 100


def envvar_value_by_name(name: str) -> Optional[str]:
    """Get the current value of an env var by name, or None if missing."""
    return _os.environ.get(name)


def env_flag(name: str) -> bool:
    value = envvar_value_by_name(name)
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_VALUES


def debug_logging_enabled() -> bool:
    return env_flag("LITESCRIPT_DEBUG")


def debug_py_trace_enabled() -> bool:
    return env_flag("LITESCRIPT_DEBUG_PY_TRACE")


def node_executable() -> str:
    value = envvar_value_by_name("LITESCRIPT_NODE")
    if value is None or not value.strip():
        return DEFAULT_NODE
    return value.strip()


def default_max_passes() -> int:
    """Sugar pass budget; invalid or non-positive overrides fall back to 100."""
    raw = envvar_value_by_name("LITESCRIPT_MAX_SUGAR_PASSES")
    if raw is None:
        return DEFAULT_MAX_SUGAR_PASSES

    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_MAX_SUGAR_PASSES

    return value if value > 0 else DEFAULT_MAX_SUGAR_PASSES


_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def js_string(text: str) -> str:
    """Render *text* as a single-quoted JavaScript string literal."""
    return "'" + "".join(_JS_ESCAPES.get(ch, ch) for ch in text) + "'"
