"""Descriptors and helpers for the well-known types in `google.protobuf`."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from . import errors, validate
from .descriptor import EnumDescriptor, EnumValue, FieldDescriptor, Kind, MessageDescriptor
from .message import Message

if TYPE_CHECKING:
    from .codec import Codec
    from .registry import Resolver

PACKAGE = 'google.protobuf'
TYPE_URL_PREFIX = 'type.googleapis.com/'

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _name(name: str) -> str:
    return f'{PACKAGE}.{name}'


def _scalar(name: str, number: int, kind: Kind, **kwargs: Any) -> FieldDescriptor:
    return FieldDescriptor(name=name, number=number, kind=kind, **kwargs)


ANY = MessageDescriptor(
    _name('Any'),
    [_scalar('type_url', 1, Kind.STRING), _scalar('value', 2, Kind.BYTES)],
)

TIMESTAMP = MessageDescriptor(
    _name('Timestamp'),
    [_scalar('seconds', 1, Kind.INT64), _scalar('nanos', 2, Kind.INT32)],
)

DURATION = MessageDescriptor(
    _name('Duration'),
    [_scalar('seconds', 1, Kind.INT64), _scalar('nanos', 2, Kind.INT32)],
)

DOUBLE_VALUE = MessageDescriptor(_name('DoubleValue'), [_scalar('value', 1, Kind.DOUBLE)])
FLOAT_VALUE = MessageDescriptor(_name('FloatValue'), [_scalar('value', 1, Kind.FLOAT)])
INT64_VALUE = MessageDescriptor(_name('Int64Value'), [_scalar('value', 1, Kind.INT64)])
UINT64_VALUE = MessageDescriptor(_name('UInt64Value'), [_scalar('value', 1, Kind.UINT64)])
INT32_VALUE = MessageDescriptor(_name('Int32Value'), [_scalar('value', 1, Kind.INT32)])
UINT32_VALUE = MessageDescriptor(_name('UInt32Value'), [_scalar('value', 1, Kind.UINT32)])
BOOL_VALUE = MessageDescriptor(_name('BoolValue'), [_scalar('value', 1, Kind.BOOL)])
STRING_VALUE = MessageDescriptor(_name('StringValue'), [_scalar('value', 1, Kind.STRING)])
BYTES_VALUE = MessageDescriptor(_name('BytesValue'), [_scalar('value', 1, Kind.BYTES)])

WRAPPERS = (
    DOUBLE_VALUE,
    FLOAT_VALUE,
    INT64_VALUE,
    UINT64_VALUE,
    INT32_VALUE,
    UINT32_VALUE,
    BOOL_VALUE,
    STRING_VALUE,
    BYTES_VALUE,
)

NULL_VALUE = EnumDescriptor(_name('NullValue'), (EnumValue('NULL_VALUE', 0),))

# Struct, Value and ListValue refer to each other
STRUCT = MessageDescriptor(_name('Struct'))
VALUE = MessageDescriptor(_name('Value'))
LIST_VALUE = MessageDescriptor(_name('ListValue'))

STRUCT.add_field(
    FieldDescriptor(
        name='fields',
        number=1,
        kind=Kind.MESSAGE,
        repeated=True,
        key_kind=Kind.STRING,
        message_type=VALUE,
    )
)
VALUE.add_field(_scalar('null_value', 1, Kind.ENUM, enum_type=NULL_VALUE, oneof='kind'))
VALUE.add_field(_scalar('number_value', 2, Kind.DOUBLE, oneof='kind'))
VALUE.add_field(_scalar('string_value', 3, Kind.STRING, oneof='kind'))
VALUE.add_field(_scalar('bool_value', 4, Kind.BOOL, oneof='kind'))
VALUE.add_field(_scalar('struct_value', 5, Kind.MESSAGE, message_type=STRUCT, oneof='kind'))
VALUE.add_field(_scalar('list_value', 6, Kind.MESSAGE, message_type=LIST_VALUE, oneof='kind'))
LIST_VALUE.add_field(
    FieldDescriptor(name='values', number=1, kind=Kind.MESSAGE, repeated=True, message_type=VALUE)
)

FIELD_MASK = MessageDescriptor(
    _name('FieldMask'), [_scalar('paths', 1, Kind.STRING, repeated=True)]
)

EMPTY = MessageDescriptor(_name('Empty'))

ALL = (
    ANY,
    TIMESTAMP,
    DURATION,
    *WRAPPERS,
    STRUCT,
    VALUE,
    LIST_VALUE,
    FIELD_MASK,
    EMPTY,
)


def type_url(descriptor: MessageDescriptor, prefix: str = TYPE_URL_PREFIX) -> str:
    return f'{prefix}{descriptor.full_name}'


##
## Timestamp and Duration
##


def timestamp(dt: datetime | None = None) -> Message:
    """Return a Timestamp for `dt` (now if omitted). Naive values are UTC."""
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - EPOCH
    seconds = delta.days * 86400 + delta.seconds
    nanos = delta.microseconds * 1000
    validate.check_timestamp(seconds, nanos)
    return Message(TIMESTAMP, seconds=seconds, nanos=nanos)


def to_datetime(msg: Message) -> datetime:
    """Return an aware UTC datetime. Nanoseconds are truncated to microseconds."""
    seconds, nanos = msg.get('seconds'), msg.get('nanos')
    validate.check_timestamp(seconds, nanos)
    return EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)


def duration(td: timedelta) -> Message:
    total_us = (td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds
    seconds = abs(total_us) // 1_000_000
    nanos = abs(total_us) % 1_000_000 * 1000
    if total_us < 0:
        seconds, nanos = -seconds, -nanos
    validate.check_duration(seconds, nanos)
    return Message(DURATION, seconds=seconds, nanos=nanos)


def to_timedelta(msg: Message) -> timedelta:
    seconds, nanos = msg.get('seconds'), msg.get('nanos')
    validate.check_duration(seconds, nanos)
    return timedelta(seconds=seconds, microseconds=int(nanos / 1000))


##
## Struct, Value and ListValue
##


def value(obj: Any) -> Message:
    """Build a Value from plain Python data (None, bool, numbers, str, dict, list)."""
    if isinstance(obj, Message) and obj.descriptor is VALUE:
        return obj
    msg = Message(VALUE)
    if obj is None:
        msg.set('null_value', 0)
    elif isinstance(obj, bool):
        msg.set('bool_value', obj)
    elif isinstance(obj, (int, float)):
        msg.set('number_value', float(obj))
    elif isinstance(obj, str):
        msg.set('string_value', obj)
    elif isinstance(obj, Mapping):
        msg.set('struct_value', struct(obj))
    elif isinstance(obj, (list, tuple)):
        msg.set('list_value', list_value(obj))
    else:
        raise TypeError(f'cannot convert {type(obj).__name__} to {VALUE.full_name}')
    return msg


def struct(obj: Mapping[str, Any]) -> Message:
    return Message(STRUCT, fields={str(k): value(v) for k, v in obj.items()})


def list_value(obj: Any) -> Message:
    return Message(LIST_VALUE, values=[value(v) for v in obj])


def to_python(msg: Message) -> Any:
    """Convert a Struct, ListValue or Value back to plain Python data."""
    if msg.descriptor is STRUCT:
        return {k: to_python(v) for k, v in msg.get('fields').items()}
    if msg.descriptor is LIST_VALUE:
        return [to_python(v) for v in msg.get('values')]
    if msg.descriptor is not VALUE:
        raise TypeError(f'expected Struct, ListValue or Value, got {msg.descriptor.full_name}')
    kind = msg.which_oneof('kind')
    if kind is None:
        raise errors.OneofUnset(f'{VALUE.full_name}: none of the oneof fields is set')
    if kind == 'null_value':
        return None
    if kind in ('struct_value', 'list_value'):
        return to_python(msg.get(kind))
    return msg.get(kind)


##
## FieldMask
##


def field_mask(*paths: str) -> Message:
    return Message(FIELD_MASK, paths=paths)


##
## Any
##


def pack(
    msg: Message, payload_codec: Codec | None = None, prefix: str = TYPE_URL_PREFIX
) -> Message:
    """Wrap `msg` in an Any, serializing it with `payload_codec`."""
    if payload_codec is None:
        from .codec.msgpack import MsgpackCodec

        payload_codec = MsgpackCodec()
    return Message(
        ANY, type_url=type_url(msg.descriptor, prefix), value=payload_codec.encode(msg)
    )


def unpack(any_msg: Message, resolver: Resolver, payload_codec: Codec | None = None) -> Message:
    """Resolve and deserialize the payload of an Any."""
    if not any_msg.has('type_url'):
        raise errors.MissingTypeUrl(f'{ANY.full_name}: type_url is not set')
    descriptor = resolver.resolve(any_msg.get('type_url'))
    if payload_codec is None:
        from .codec.msgpack import MsgpackCodec

        payload_codec = MsgpackCodec()
    return payload_codec.decode(any_msg.get('value'), descriptor)
