"""Canonical JSON mapping for schema-typed messages."""

from . import errors, logs, names, wkt
from .codec import Codec, create
from .codec.jsonpb import JsonPbCodec, decode_canonical, encode_canonical
from .codec.msgpack import MsgpackCodec
from .descriptor import EnumDescriptor, EnumValue, FieldDescriptor, Kind, MessageDescriptor
from .dispatch import WellKnown, dispatch
from .message import Message
from .options import MarshalOptions, UnmarshalOptions
from .registry import Resolver, TypeRegistry

__version__ = '0.1.0'

__all__ = [
    'Codec',
    'EnumDescriptor',
    'EnumValue',
    'FieldDescriptor',
    'JsonPbCodec',
    'Kind',
    'MarshalOptions',
    'Message',
    'MessageDescriptor',
    'MsgpackCodec',
    'Resolver',
    'TypeRegistry',
    'UnmarshalOptions',
    'WellKnown',
    'create',
    'decode_canonical',
    'dispatch',
    'encode_canonical',
    'errors',
    'logs',
    'names',
    'wkt',
]
