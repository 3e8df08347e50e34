"""Formatting helpers for error messages."""

from __future__ import annotations

import traceback
from typing import Any


def format_exc(exc: BaseException) -> str:
    return traceback.format_exception_only(exc.__class__, exc)[0].strip()


def elide(value: str, width: int = 100) -> str:
    return value if len(value) <= width else f'{value[: width - 3]}...'


def format_value(value: Any) -> str:
    """Return the repr of `value`, elided to fit in an error message."""
    return elide(repr(value))


def format_item(where: str, key: Any) -> str:
    """Append a list index or map key to a field path."""
    if isinstance(key, int) and not isinstance(key, bool):
        return f'{where}[{key}]'
    return f'{where}[{key!r}]'
