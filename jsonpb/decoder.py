"""Canonical JSON to message decoding."""

from __future__ import annotations

import base64
import binascii
import contextlib
import math
import re
from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from . import errors, logs, names, validate, wkt
from .descriptor import INT_RANGES, FieldDescriptor, Kind
from .dispatch import WellKnown, dispatch
from .message import Message
from .options import UnmarshalOptions
from .tokens import TokenKind, kind_of, loads
from .utils.format import format_exc, format_item, format_value

if TYPE_CHECKING:
    from .codec import Codec
    from .descriptor import MessageDescriptor
    from .registry import Resolver

log = logs.get(__name__)

_NUMBER_RE = re.compile(r'-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?')
_INT_RE = re.compile(r'-?(?:0|[1-9][0-9]*)')
_DURATION_RE = re.compile(r'(-)?([0-9]+)(?:\.([0-9]{1,9}))?s')
_TIMESTAMP_RE = re.compile(
    r'([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})'
    r'(?:\.([0-9]{1,9}))?(?:Z|([+-])([0-9]{2}):([0-9]{2}))'
)

_FLOAT32_MAX = 3.4028234663852886e38
_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()

_SPECIAL_FLOATS = {'NaN': float('nan'), 'Infinity': float('inf'), '-Infinity': float('-inf')}


def _parse_fraction(digits: str | None) -> int:
    return int(digits.ljust(9, '0')) if digits else 0


def _parse_integer(text: str) -> int | None:
    """Parse JSON number text that has an integral value."""
    if _INT_RE.fullmatch(text):
        return int(text)
    if not _NUMBER_RE.fullmatch(text):
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    # anything this large is out of range for every integer kind
    if number.adjusted() > 20 or number != number.to_integral_value():
        return None
    return int(number)


def _to_float(node: int | float, where: str, kind: Kind) -> float:
    # JSON integers are parsed with arbitrary precision
    try:
        return float(node)
    except OverflowError:
        raise errors.RangeError(where, kind.value, node) from None


def _decode_base64(text: str) -> bytes:
    padded = text + '=' * (-len(text) % 4)
    altchars = b'-_' if '-' in text or '_' in text else None
    return base64.b64decode(padded, altchars=altchars, validate=True)


def _accepts_null(field: FieldDescriptor) -> bool:
    if field.kind is Kind.MESSAGE:
        return field.message_type is wkt.VALUE
    if field.kind is Kind.ENUM:
        assert field.enum_type is not None
        return field.enum_type.full_name == wkt.NULL_VALUE.full_name
    return False


class Decoder:
    """Populates messages from canonical JSON.

    A decoder is used for one call only.
    """

    def __init__(
        self,
        resolver: Resolver,
        payload_codec: Codec,
        options: UnmarshalOptions | None = None,
    ) -> None:
        self._resolver = resolver
        self._payload = payload_codec
        self._opts = options or UnmarshalOptions()
        self._depth = 0

    def decode(self, data: bytes | str, descriptor: MessageDescriptor) -> Message:
        node = loads(data, self._opts.max_depth)
        msg = Message(descriptor)
        self.unmarshal_message(node, msg)
        return msg

    @contextlib.contextmanager
    def _nested(self) -> Iterator[None]:
        self._depth += 1
        if self._depth > self._opts.max_depth:
            raise errors.DepthExceeded(self._opts.max_depth)
        try:
            yield
        finally:
            self._depth -= 1

    def unmarshal_message(self, node: Any, msg: Message) -> None:
        with self._nested():
            shape = dispatch(msg.descriptor.full_name)
            if shape is None:
                self._unmarshal_fields(node, msg)
            else:
                _WELL_KNOWN[shape](self, node, msg)

    ##
    ## regular messages
    ##

    def _unmarshal_fields(self, node: Any, msg: Message, skip_type: bool = False) -> None:
        descriptor = msg.descriptor
        if kind_of(node) is not TokenKind.OBJECT:
            raise errors.TypeMismatch(descriptor.full_name, 'object', node)

        seen_oneofs: set[str] = set()
        for name, value in node.items():
            if skip_type and name == '@type':
                continue

            field = descriptor.by_json_name(name)
            if field is None:
                if self._opts.discard_unknown:
                    continue
                raise errors.UnknownField(descriptor.full_name, name)

            where = f'{descriptor.full_name}.{field.name}'
            if field.oneof:
                if field.oneof in seen_oneofs:
                    raise errors.OneofConflict(
                        f'{descriptor.full_name}: oneof {field.oneof} is already set'
                    )
                seen_oneofs.add(field.oneof)

            if value is None and not _accepts_null(field):
                continue

            if field.is_map:
                msg.set(field.name, self._unmarshal_map(field, value, where))
            elif field.is_list:
                msg.set(field.name, self._unmarshal_list(field, value, where))
            else:
                msg.set(field.name, self._unmarshal_singular(field, value, where))

    def _unmarshal_list(self, field: FieldDescriptor, node: Any, where: str) -> list[Any]:
        if kind_of(node) is not TokenKind.ARRAY:
            raise errors.TypeMismatch(where, 'array', node)
        values = []
        for i, item in enumerate(node):
            item_where = format_item(where, i)
            if item is None and not _accepts_null(field):
                raise errors.TypeMismatch(item_where, field.kind.value, item)
            values.append(self._unmarshal_singular(field, item, item_where))
        return values

    def _unmarshal_map(self, field: FieldDescriptor, node: Any, where: str) -> dict[Any, Any]:
        if kind_of(node) is not TokenKind.OBJECT:
            raise errors.TypeMismatch(where, 'object', node)
        values = {}
        for name, item in node.items():
            item_where = format_item(where, name)
            key = self._unmarshal_key(field, name, item_where)
            if item is None and not _accepts_null(field):
                raise errors.TypeMismatch(item_where, field.kind.value, item)
            values[key] = self._unmarshal_singular(field, item, item_where)
        return values

    def _unmarshal_key(self, field: FieldDescriptor, name: str, where: str) -> Any:
        kind = field.key_kind
        if kind is Kind.STRING:
            return name
        if kind is Kind.BOOL:
            if name in ('true', 'false'):
                return name == 'true'
            raise errors.InvalidValue(f'{where}: invalid bool map key {name!r}')
        assert kind is not None
        if not _INT_RE.fullmatch(name):
            raise errors.InvalidValue(f'{where}: invalid {kind.value} map key {name!r}')
        return self._check_int(kind, int(name), where)

    def _unmarshal_singular(self, field: FieldDescriptor, node: Any, where: str) -> Any:
        kind = field.kind
        token = kind_of(node)

        if kind is Kind.MESSAGE:
            assert field.message_type is not None
            sub = Message(field.message_type)
            self.unmarshal_message(node, sub)
            return sub

        if kind is Kind.ENUM:
            assert field.enum_type is not None
            if token is TokenKind.NULL and _accepts_null(field):
                return 0
            if token is TokenKind.STRING:
                enum_value = field.enum_type.by_name(node)
                if enum_value is None:
                    raise errors.InvalidValue(
                        f'{where}: invalid value for enum {field.enum_type.full_name}: {node!r}'
                    )
                return enum_value.number
            if token is TokenKind.NUMBER:
                return self._unmarshal_int(Kind.INT32, node, where)
            raise errors.TypeMismatch(where, 'enum', node)

        if kind is Kind.BOOL:
            if token is not TokenKind.BOOL:
                raise errors.TypeMismatch(where, kind.value, node)
            return node

        if kind is Kind.STRING:
            if token is not TokenKind.STRING:
                raise errors.TypeMismatch(where, kind.value, node)
            return node

        if kind is Kind.BYTES:
            if token is not TokenKind.STRING:
                raise errors.TypeMismatch(where, kind.value, node)
            try:
                return _decode_base64(node)
            except (binascii.Error, ValueError) as exc:
                raise errors.InvalidValue(f'{where}: invalid base64 {format_value(node)}') from exc

        if kind.is_float:
            return self._unmarshal_float(kind, node, where)

        return self._unmarshal_int(kind, node, where)

    def _unmarshal_float(self, kind: Kind, node: Any, where: str) -> float:
        token = kind_of(node)
        if token is TokenKind.NUMBER:
            value = _to_float(node, where, kind)
        elif token is TokenKind.STRING:
            if node in _SPECIAL_FLOATS:
                return _SPECIAL_FLOATS[node]
            if not _NUMBER_RE.fullmatch(node):
                raise errors.InvalidValue(f'{where}: invalid {kind.value} value {node!r}')
            value = float(node)
        else:
            raise errors.TypeMismatch(where, kind.value, node)
        if math.isinf(value) or (kind is Kind.FLOAT and abs(value) > _FLOAT32_MAX):
            raise errors.RangeError(where, kind.value, node)
        return value

    def _unmarshal_int(self, kind: Kind, node: Any, where: str) -> int:
        token = kind_of(node)
        value: int | None
        if token is TokenKind.NUMBER:
            if isinstance(node, int):
                value = node
            else:
                value = int(node) if node.is_integer() else None
        elif token is TokenKind.STRING:
            value = _parse_integer(node)
        else:
            raise errors.TypeMismatch(where, kind.value, node)
        if value is None:
            raise errors.InvalidValue(f'{where}: invalid {kind.value} value {node!r}')
        return self._check_int(kind, value, where)

    @staticmethod
    def _check_int(kind: Kind, value: int, where: str) -> int:
        low, high = INT_RANGES[kind]
        if not low <= value <= high:
            raise errors.RangeError(where, kind.value, value)
        return value

    ##
    ## well-known types
    ##

    def _unmarshal_any(self, node: Any, msg: Message) -> None:
        name = wkt.ANY.full_name
        if kind_of(node) is not TokenKind.OBJECT:
            raise errors.TypeMismatch(name, 'object', node)
        if not node:
            return

        if '@type' not in node:
            raise errors.MissingTypeUrl(f'{name}: missing "@type" field')
        type_url = node['@type']
        if kind_of(type_url) is not TokenKind.STRING:
            raise errors.TypeMismatch(f'{name}.@type', 'string', type_url)

        descriptor = self._resolver.resolve(type_url)
        if log.isEnabledFor(logs.DEBUG):
            log.debug('any: %s -> %s', type_url, descriptor.full_name)

        inner = Message(descriptor)
        if dispatch(descriptor.full_name) is not None:
            if 'value' not in node:
                raise errors.InvalidValue(f'{name}: missing "value" field')
            for member in node:
                if member not in ('@type', 'value') and not self._opts.discard_unknown:
                    raise errors.UnknownField(name, member)
            self.unmarshal_message(node['value'], inner)
        else:
            with self._nested():
                self._unmarshal_fields(node, inner, skip_type=True)

        try:
            payload = self._payload.encode(inner)
        except errors.JsonPbError:
            raise
        except Exception as exc:
            raise errors.DecodeError(
                f'{name}: unable to marshal {type_url!r}: {format_exc(exc)}'
            ) from exc

        msg.set('type_url', type_url)
        msg.set('value', payload)

    def _unmarshal_timestamp(self, node: Any, msg: Message) -> None:
        name = wkt.TIMESTAMP.full_name
        if kind_of(node) is not TokenKind.STRING:
            raise errors.TypeMismatch(name, 'string', node)
        match = _TIMESTAMP_RE.fullmatch(node)
        if match is None:
            raise errors.InvalidValue(f'invalid {name} value {node!r}')

        year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
        try:
            days = date(year, month, day).toordinal() - _EPOCH_ORDINAL
        except ValueError as exc:
            raise errors.InvalidValue(f'invalid {name} value {node!r}') from exc
        if hour > 23 or minute > 59 or second > 59:
            raise errors.InvalidValue(f'invalid {name} value {node!r}')

        seconds = days * 86400 + hour * 3600 + minute * 60 + second
        sign, offset_hours, offset_minutes = match.group(8, 9, 10)
        if sign:
            if int(offset_hours) > 23 or int(offset_minutes) > 59:
                raise errors.InvalidValue(f'invalid {name} value {node!r}')
            offset = int(offset_hours) * 3600 + int(offset_minutes) * 60
            seconds -= offset if sign == '+' else -offset

        nanos = _parse_fraction(match.group(7))
        validate.check_timestamp(seconds, nanos)
        msg.set('seconds', seconds)
        msg.set('nanos', nanos)

    def _unmarshal_duration(self, node: Any, msg: Message) -> None:
        name = wkt.DURATION.full_name
        if kind_of(node) is not TokenKind.STRING:
            raise errors.TypeMismatch(name, 'string', node)
        match = _DURATION_RE.fullmatch(node)
        if match is None:
            raise errors.InvalidValue(f'invalid {name} value {node!r}')

        seconds = int(match.group(2))
        nanos = _parse_fraction(match.group(3))
        if match.group(1):
            seconds, nanos = -seconds, -nanos
        validate.check_duration(seconds, nanos)
        msg.set('seconds', seconds)
        msg.set('nanos', nanos)

    def _unmarshal_wrapper(self, node: Any, msg: Message) -> None:
        field = msg.descriptor.field('value')
        where = f'{msg.descriptor.full_name}.value'
        if node is None:
            raise errors.TypeMismatch(where, field.kind.value, node)
        msg.set('value', self._unmarshal_singular(field, node, where))

    def _unmarshal_struct(self, node: Any, msg: Message) -> None:
        field = msg.descriptor.field('fields')
        where = f'{msg.descriptor.full_name}.fields'
        msg.set('fields', self._unmarshal_map(field, node, where))

    def _unmarshal_list_value(self, node: Any, msg: Message) -> None:
        field = msg.descriptor.field('values')
        where = f'{msg.descriptor.full_name}.values'
        msg.set('values', self._unmarshal_list(field, node, where))

    def _unmarshal_value(self, node: Any, msg: Message) -> None:
        token = kind_of(node)
        if token is TokenKind.NULL:
            msg.set('null_value', 0)
        elif token is TokenKind.BOOL:
            msg.set('bool_value', node)
        elif token is TokenKind.NUMBER:
            where = f'{wkt.VALUE.full_name}.number_value'
            msg.set('number_value', _to_float(node, where, Kind.DOUBLE))
        elif token is TokenKind.STRING:
            msg.set('string_value', node)
        elif token is TokenKind.OBJECT:
            sub = Message(wkt.STRUCT)
            self.unmarshal_message(node, sub)
            msg.set('struct_value', sub)
        else:
            sub = Message(wkt.LIST_VALUE)
            self.unmarshal_message(node, sub)
            msg.set('list_value', sub)

    def _unmarshal_field_mask(self, node: Any, msg: Message) -> None:
        name = wkt.FIELD_MASK.full_name
        if kind_of(node) is not TokenKind.STRING:
            raise errors.TypeMismatch(name, 'string', node)
        paths = [names.to_snake(path) for path in node.split(',')] if node else []
        msg.set('paths', paths)

    def _unmarshal_empty(self, node: Any, msg: Message) -> None:
        name = wkt.EMPTY.full_name
        if kind_of(node) is not TokenKind.OBJECT:
            raise errors.TypeMismatch(name, 'object', node)
        if node and not self._opts.discard_unknown:
            raise errors.UnknownField(name, next(iter(node)))


_WELL_KNOWN: dict[WellKnown, Callable[[Decoder, Any, Message], None]] = {
    WellKnown.ANY: Decoder._unmarshal_any,
    WellKnown.TIMESTAMP: Decoder._unmarshal_timestamp,
    WellKnown.DURATION: Decoder._unmarshal_duration,
    WellKnown.WRAPPER: Decoder._unmarshal_wrapper,
    WellKnown.STRUCT: Decoder._unmarshal_struct,
    WellKnown.LIST_VALUE: Decoder._unmarshal_list_value,
    WellKnown.VALUE: Decoder._unmarshal_value,
    WellKnown.FIELD_MASK: Decoder._unmarshal_field_mask,
    WellKnown.EMPTY: Decoder._unmarshal_empty,
}
