"""Low-level JSON token emission and parsing."""

from __future__ import annotations

import enum
from typing import Any

import msgspec

from . import errors
from .options import DEFAULT_MAX_DEPTH
from .utils.format import format_value

_encode = msgspec.json.encode


class TokenKind(enum.Enum):
    NULL = 'null'
    BOOL = 'bool'
    NUMBER = 'number'
    STRING = 'string'
    OBJECT = 'object'
    ARRAY = 'array'


def kind_of(value: Any) -> TokenKind:
    """Return the token kind of a parsed JSON node."""
    if value is None:
        return TokenKind.NULL
    if isinstance(value, bool):
        return TokenKind.BOOL
    if isinstance(value, (int, float)):
        return TokenKind.NUMBER
    if isinstance(value, str):
        return TokenKind.STRING
    if isinstance(value, dict):
        return TokenKind.OBJECT
    if isinstance(value, list):
        return TokenKind.ARRAY
    raise TypeError(f'not a JSON value: {type(value).__name__}')


def loads(data: bytes | str, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Parse exactly one JSON value from `data`.

    Input nested too deeply for the parser raises `DepthExceeded` with
    `max_depth` as the reported limit.
    """
    try:
        return msgspec.json.decode(data)
    except msgspec.DecodeError as exc:
        raise errors.JsonSyntaxError(f'{exc}: data={format_value(data)}') from exc
    except RecursionError:
        raise errors.DepthExceeded(max_depth) from None


class Writer:
    """Append-only JSON writer that tracks nesting and separators.

    With `indent` set, every member and element is written on its own line.
    """

    def __init__(self, indent: str | None = None) -> None:
        self._parts: list[bytes] = []
        self._indent = indent.encode() if indent else None
        # one entry per open container: True until its first item is written
        self._stack: list[bool] = []
        self._after_name = False

    @property
    def depth(self) -> int:
        return len(self._stack)

    def getvalue(self) -> bytes:
        if self._stack:
            raise errors.EncodeError('unterminated JSON container')
        return b''.join(self._parts)

    def _newline(self) -> None:
        if self._indent is not None:
            self._parts.append(b'\n' + self._indent * len(self._stack))

    def _prepare(self) -> None:
        """Emit the separator that precedes a new value."""
        if self._after_name:
            self._after_name = False
            return
        if self._stack:
            if self._stack[-1]:
                self._stack[-1] = False
            else:
                self._parts.append(b',')
            self._newline()

    def _open(self, token: bytes) -> None:
        self._prepare()
        self._parts.append(token)
        self._stack.append(True)

    def _close(self, token: bytes) -> None:
        empty = self._stack.pop()
        if not empty:
            self._newline()
        self._parts.append(token)

    def start_object(self) -> None:
        self._open(b'{')

    def end_object(self) -> None:
        self._close(b'}')

    def start_array(self) -> None:
        self._open(b'[')

    def end_array(self) -> None:
        self._close(b']')

    def write_name(self, name: str) -> None:
        self._prepare()
        self._parts.append(_encode(name))
        self._parts.append(b': ' if self._indent is not None else b':')
        self._after_name = True

    def write_string(self, value: str) -> None:
        self._prepare()
        self._parts.append(_encode(value))

    def write_number(self, text: str) -> None:
        """Write an already formatted number."""
        self._prepare()
        self._parts.append(text.encode())

    def write_bool(self, value: bool) -> None:
        self._prepare()
        self._parts.append(b'true' if value else b'false')

    def write_null(self) -> None:
        self._prepare()
        self._parts.append(b'null')
