"""Identifier casing used for JSON field names and field mask paths."""

from __future__ import annotations

import re

_IDENT_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


def _is_lower(c: str) -> bool:
    return 'a' <= c <= 'z'


def _is_upper(c: str) -> bool:
    return 'A' <= c <= 'Z'


def to_camel(s: str) -> str:
    """Convert a snake_case identifier to camelCase.

    Every underscore is dropped. A lowercase ASCII letter that directly follows
    an underscore is upper-cased; any other character is kept as is.
    """
    out = []
    was_underscore = False
    for c in s:
        if c != '_':
            if was_underscore and _is_lower(c):
                c = c.upper()
            out.append(c)
        was_underscore = c == '_'
    return ''.join(out)


def to_snake(s: str) -> str:
    """Convert a camelCase identifier to snake_case."""
    out = []
    for c in s:
        if _is_upper(c):
            out.append('_')
            c = c.lower()
        out.append(c)
    return ''.join(out)


def is_reversible(s: str) -> bool:
    """Return `True` if `s` survives a camelCase round trip unchanged."""
    return to_snake(to_camel(s)) == s


def is_valid_path(s: str) -> bool:
    """Return `True` if `s` is a non-empty dot-separated identifier path."""
    if not s:
        return False
    return all(_IDENT_RE.fullmatch(part) for part in s.split('.'))
