"""Msgpack codec used for opaque Any payloads."""

from __future__ import annotations

from typing import Any

import msgpack

from ..descriptor import FieldDescriptor, Kind, MessageDescriptor
from ..message import Message
from . import Codec


def _pack_value(field: FieldDescriptor, value: Any) -> Any:
    if field.kind is Kind.MESSAGE:
        return pack_fields(value)
    return value


def pack_fields(msg: Message) -> dict[int, Any]:
    """Return the set fields of `msg` keyed by field number."""
    out: dict[int, Any] = {}
    for field, value in msg.list_fields():
        if field.is_map:
            out[field.number] = {k: _pack_value(field, v) for k, v in value.items()}
        elif field.is_list:
            out[field.number] = [_pack_value(field, v) for v in value]
        else:
            out[field.number] = _pack_value(field, value)
    return out


def _unpack_value(field: FieldDescriptor, value: Any) -> Any:
    if field.kind is Kind.MESSAGE:
        assert field.message_type is not None
        return unpack_fields(value, field.message_type)
    return value


def unpack_fields(data: dict[int, Any], descriptor: MessageDescriptor) -> Message:
    """Build a message from a field number map. Unknown numbers are skipped."""
    if not isinstance(data, dict):
        raise TypeError(f'{descriptor.full_name}: expected map, got {type(data).__name__}')
    msg = Message(descriptor)
    for number, value in data.items():
        field = descriptor.by_number(number)
        if field is None:
            continue
        if field.is_map:
            value = {k: _unpack_value(field, v) for k, v in value.items()}
        elif field.is_list:
            value = [_unpack_value(field, v) for v in value]
        else:
            value = _unpack_value(field, value)
        msg.set(field.name, value)
    return msg


class MsgpackCodec(Codec):
    """Codec backed by msgpack for compact binary payloads.

    Messages are packed as maps from field number to value, so they can only
    be read back with the matching descriptor. Decoding is partial: fields the
    descriptor does not know are dropped and nothing is required.
    """

    NAME = 'msgpack'

    def encode(self, msg: Any) -> bytes:
        """Serialize messages or plain values to msgpack bytes."""
        if isinstance(msg, Message):
            msg = pack_fields(msg)
        data = msgpack.packb(msg, use_bin_type=True)
        if isinstance(data, bytes):
            return data
        if isinstance(data, bytearray):
            return bytes(data)
        raise TypeError(f'unsupported msgpack result: {type(data).__name__}')

    def decode(self, data: bytes, descriptor: MessageDescriptor | None = None) -> Any:
        """Decode msgpack bytes, into a message when `descriptor` is given."""
        if descriptor is not None and not data:
            return Message(descriptor)
        value = msgpack.unpackb(data, use_list=True, raw=False, strict_map_key=False)
        if descriptor is None:
            return value
        return unpack_fields(value, descriptor)
