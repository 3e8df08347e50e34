"""Schema descriptions for typed messages."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator

import msgspec

from . import names


class Kind(enum.Enum):
    """Declared kind of a field value."""

    DOUBLE = 'double'
    FLOAT = 'float'
    INT32 = 'int32'
    INT64 = 'int64'
    UINT32 = 'uint32'
    UINT64 = 'uint64'
    SINT32 = 'sint32'
    SINT64 = 'sint64'
    FIXED32 = 'fixed32'
    FIXED64 = 'fixed64'
    SFIXED32 = 'sfixed32'
    SFIXED64 = 'sfixed64'
    BOOL = 'bool'
    STRING = 'string'
    BYTES = 'bytes'
    ENUM = 'enum'
    MESSAGE = 'message'

    @property
    def is_integer(self) -> bool:
        return self in INT_RANGES

    @property
    def is_64bit(self) -> bool:
        return self in _64BIT

    @property
    def is_float(self) -> bool:
        return self in (Kind.DOUBLE, Kind.FLOAT)


_64BIT = frozenset([Kind.INT64, Kind.UINT64, Kind.SINT64, Kind.FIXED64, Kind.SFIXED64])

_INT32 = (-(2**31), 2**31 - 1)
_INT64 = (-(2**63), 2**63 - 1)
_UINT32 = (0, 2**32 - 1)
_UINT64 = (0, 2**64 - 1)

INT_RANGES: dict[Kind, tuple[int, int]] = {
    Kind.INT32: _INT32,
    Kind.SINT32: _INT32,
    Kind.SFIXED32: _INT32,
    Kind.INT64: _INT64,
    Kind.SINT64: _INT64,
    Kind.SFIXED64: _INT64,
    Kind.UINT32: _UINT32,
    Kind.FIXED32: _UINT32,
    Kind.UINT64: _UINT64,
    Kind.FIXED64: _UINT64,
}

# valid map key kinds
KEY_KINDS = frozenset([Kind.STRING, Kind.BOOL, *INT_RANGES])


class EnumValue(msgspec.Struct, frozen=True):
    name: str
    number: int


class EnumDescriptor(msgspec.Struct, frozen=True):
    """Named set of enum values."""

    full_name: str
    values: tuple[EnumValue, ...]

    def by_name(self, name: str) -> EnumValue | None:
        for value in self.values:
            if value.name == name:
                return value
        return None

    def by_number(self, number: int) -> EnumValue | None:
        for value in self.values:
            if value.number == number:
                return value
        return None


class FieldDescriptor(msgspec.Struct, frozen=True, kw_only=True):
    """Description of a single message field.

    A field with `key_kind` set is a map whose values are described by the
    remaining attributes. `optional` marks explicit presence for a scalar;
    message fields and oneof members always have presence.
    """

    name: str
    number: int
    kind: Kind
    repeated: bool = False
    key_kind: Kind | None = None
    message_type: MessageDescriptor | None = None
    enum_type: EnumDescriptor | None = None
    oneof: str | None = None
    optional: bool = False
    json_name: str | None = None

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError(f'invalid field number for {self.name!r}: {self.number}')
        if self.kind is Kind.MESSAGE and self.message_type is None:
            raise ValueError(f'message field {self.name!r} requires message_type')
        if self.kind is Kind.ENUM and self.enum_type is None:
            raise ValueError(f'enum field {self.name!r} requires enum_type')
        if self.key_kind is not None and self.key_kind not in KEY_KINDS:
            raise ValueError(f'invalid map key kind for {self.name!r}: {self.key_kind.value}')
        if self.oneof and (self.repeated or self.key_kind is not None):
            raise ValueError(f'oneof field {self.name!r} cannot be repeated')

    @property
    def is_map(self) -> bool:
        return self.key_kind is not None

    @property
    def is_list(self) -> bool:
        return self.repeated and self.key_kind is None

    @property
    def has_presence(self) -> bool:
        if self.repeated or self.key_kind is not None:
            return False
        return self.optional or self.oneof is not None or self.kind is Kind.MESSAGE

    @property
    def camel_name(self) -> str:
        return self.json_name or names.to_camel(self.name)


class MessageDescriptor:
    """Named message type with an ordered set of fields.

    Descriptors compare by identity. Fields may be added after construction,
    which allows mutually recursive types to reference each other.
    """

    def __init__(self, full_name: str, fields: Iterable[FieldDescriptor] = ()) -> None:
        self.full_name = full_name
        self._by_name: dict[str, FieldDescriptor] = {}
        self._by_number: dict[int, FieldDescriptor] = {}
        self._by_json_name: dict[str, FieldDescriptor] = {}
        self._oneofs: dict[str, list[FieldDescriptor]] = {}
        for field in fields:
            self.add_field(field)

    @property
    def name(self) -> str:
        return self.full_name.rpartition('.')[2]

    @property
    def package(self) -> str:
        return self.full_name.rpartition('.')[0]

    def add_field(self, field: FieldDescriptor) -> FieldDescriptor:
        if field.name in self._by_name:
            raise ValueError(f'{self.full_name}: duplicate field name {field.name!r}')
        if field.number in self._by_number:
            raise ValueError(f'{self.full_name}: duplicate field number {field.number}')
        self._by_name[field.name] = field
        self._by_number[field.number] = field
        self._by_json_name[field.camel_name] = field
        if field.oneof:
            self._oneofs.setdefault(field.oneof, []).append(field)
        return field

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        """Return all fields ordered by number."""
        return tuple(sorted(self._by_number.values(), key=lambda f: f.number))

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def field(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f'{self.full_name} has no field {name!r}') from None

    def by_number(self, number: int) -> FieldDescriptor | None:
        return self._by_number.get(number)

    def by_json_name(self, name: str) -> FieldDescriptor | None:
        """Match a JSON member name against JSON names, then proto names."""
        return self._by_json_name.get(name) or self._by_name.get(name)

    def oneof_fields(self, oneof: str) -> tuple[FieldDescriptor, ...]:
        return tuple(self._oneofs.get(oneof, ()))

    @property
    def oneofs(self) -> tuple[str, ...]:
        return tuple(self._oneofs)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.full_name!r})'
