from __future__ import annotations

from typing import Any

from .utils.format import elide, format_value


class JsonPbError(Exception):
    """Base class for all jsonpb exceptions."""


class EncodeError(JsonPbError):
    """Adds context for errors raised when encoding."""


class DecodeError(JsonPbError):
    """Adds context for errors raised when decoding."""


class RegistryError(JsonPbError):
    """Raised when attempting to register a duplicate object."""


class RangeError(JsonPbError):
    """Raised when a numeric field is outside the bounds of its type."""

    def __init__(self, name: str, field: str, value: Any) -> None:
        super().__init__(f'{name}: {field} out of range {elide(str(value))}')
        self.name = name
        self.field = field
        self.value = value


class SignMismatch(JsonPbError):
    """Raised when the seconds and nanos of a duration disagree in sign."""

    def __init__(self, name: str, seconds: int, nanos: int) -> None:
        super().__init__(f'{name}: signs of seconds ({seconds}) and nanos ({nanos}) do not match')
        self.seconds = seconds
        self.nanos = nanos


class MissingTypeUrl(JsonPbError):
    """Raised when an Any payload has no type URL."""


class UnresolvableType(JsonPbError):
    """Raised when a type URL or name is not known to the resolver."""

    def __init__(self, type_url: str) -> None:
        super().__init__(f'unable to resolve {type_url!r}')
        self.type_url = type_url


class OneofUnset(JsonPbError):
    """Raised when none of the members of a oneof is set."""


class OneofConflict(OneofUnset):
    """Raised when more than one member of a oneof is given."""


class InvalidPath(JsonPbError):
    """Raised for a field mask path that is not a dotted identifier path."""

    def __init__(self, path: str) -> None:
        super().__init__(f'google.protobuf.FieldMask.paths contains invalid path: {path!r}')
        self.path = path


class IrreversiblePath(JsonPbError):
    """Raised for a field mask path that does not survive a camelCase round trip."""

    def __init__(self, path: str) -> None:
        super().__init__(f'google.protobuf.FieldMask.paths contains irreversible value {path!r}')
        self.path = path


class NumericInvalid(JsonPbError):
    """Raised for NaN or infinite numbers where JSON has no representation."""


class JsonSyntaxError(DecodeError):
    """Raised for malformed JSON input."""


class TypeMismatch(DecodeError):
    """Raised when a JSON value has the wrong kind for its field."""

    def __init__(self, field: str, expected: str, value: Any) -> None:
        super().__init__(f'invalid value for {expected} field {field}: {format_value(value)}')
        self.field = field
        self.expected = expected
        self.value = value


class InvalidValue(DecodeError):
    """Raised when a JSON value has the right kind but unparseable content."""


class UnknownField(DecodeError):
    """Raised for object members that do not match any field."""

    def __init__(self, name: str, member: str) -> None:
        super().__init__(f'{name}: unknown field {member!r}')
        self.name = name
        self.member = member


class DepthExceeded(JsonPbError):
    """Raised when message nesting exceeds the configured limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f'exceeded maximum nesting depth {limit}')
        self.limit = limit
