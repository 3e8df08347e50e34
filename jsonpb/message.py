"""Dynamic message instances with explicit field presence."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .descriptor import FieldDescriptor, Kind, MessageDescriptor

_ZERO: dict[Kind, Any] = {
    Kind.DOUBLE: 0.0,
    Kind.FLOAT: 0.0,
    Kind.BOOL: False,
    Kind.STRING: '',
    Kind.BYTES: b'',
    Kind.ENUM: 0,
}


def zero_value(field: FieldDescriptor) -> Any:
    """Return the default value of a singular field."""
    if field.kind is Kind.MESSAGE:
        return None
    return _ZERO.get(field.kind, 0)


def is_zero(field: FieldDescriptor, value: Any) -> bool:
    if field.is_map or field.is_list:
        return not value
    if field.kind is Kind.MESSAGE:
        return value is None
    return value == zero_value(field)


class Message:
    """An instance of a `MessageDescriptor`.

    Only explicitly set fields are stored, so a field set to its zero value is
    distinguishable from an unset one. Setting a member of a oneof clears the
    other members.
    """

    __slots__ = ('_descriptor', '_values')

    def __init__(self, descriptor: MessageDescriptor, **fields: Any) -> None:
        self._descriptor = descriptor
        self._values: dict[str, Any] = {}
        for name, value in fields.items():
            self.set(name, value)

    @property
    def descriptor(self) -> MessageDescriptor:
        return self._descriptor

    def has(self, name: str) -> bool:
        self._descriptor.field(name)
        return name in self._values

    def get(self, name: str) -> Any:
        """Return the field value, or its default when unset."""
        field = self._descriptor.field(name)
        try:
            return self._values[name]
        except KeyError:
            pass
        if field.is_map:
            return {}
        if field.is_list:
            return []
        return zero_value(field)

    def set(self, name: str, value: Any) -> None:
        field = self._descriptor.field(name)
        if field.kind is Kind.MESSAGE and not field.repeated:
            if value is None:
                self.clear(name)
                return
            _check_message(field, value)
        elif field.is_list:
            value = list(value)
        elif field.is_map:
            value = dict(value)
        if field.oneof:
            for other in self._descriptor.oneof_fields(field.oneof):
                self._values.pop(other.name, None)
        self._values[name] = value

    def clear(self, name: str) -> None:
        self._descriptor.field(name)
        self._values.pop(name, None)

    def mutable(self, name: str) -> Any:
        """Return a stored list, dict or sub-message, creating it if unset."""
        field = self._descriptor.field(name)
        if name not in self._values:
            if field.is_map:
                self.set(name, {})
            elif field.is_list:
                self.set(name, [])
            elif field.kind is Kind.MESSAGE:
                assert field.message_type is not None
                self.set(name, Message(field.message_type))
            else:
                raise TypeError(f'{self._descriptor.full_name}.{name} is a scalar field')
        return self._values[name]

    def which_oneof(self, oneof: str) -> str | None:
        """Return the name of the set member of `oneof`, if any."""
        for field in self._descriptor.oneof_fields(oneof):
            if field.name in self._values:
                return field.name
        return None

    def list_fields(self) -> Iterator[tuple[FieldDescriptor, Any]]:
        """Yield set fields and their values in field number order."""
        for field in self._descriptor.fields:
            if field.name in self._values:
                yield field, self._values[field.name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        if other._descriptor is not self._descriptor:
            return False
        return all(self.get(f.name) == other.get(f.name) for f in self._descriptor.fields) and all(
            self.has(f.name) == other.has(f.name)
            for f in self._descriptor.fields
            if f.has_presence
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ', '.join(f'{f.name}={v!r}' for f, v in self.list_fields())
        return f'{self._descriptor.name}({fields})'


def _check_message(field: FieldDescriptor, value: Any) -> None:
    if not isinstance(value, Message) or value.descriptor is not field.message_type:
        expected = field.message_type.full_name if field.message_type else '?'
        raise TypeError(f'{field.name}: expected {expected} message, got {value!r}')
