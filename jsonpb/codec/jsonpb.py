"""Canonical JSON codec for typed messages."""

from __future__ import annotations

from typing import IO, Any

from msgspec import json

from ..decoder import Decoder
from ..descriptor import MessageDescriptor
from ..encoder import Encoder
from ..message import Message
from ..options import MarshalOptions, UnmarshalOptions
from ..registry import Resolver, TypeRegistry
from ..tokens import loads
from . import Codec, create

CONTENT_TYPE = 'application/json'


class JsonPbCodec(Codec):
    """Codec that maps messages to and from their canonical JSON form.

    Values that are not messages are handled as plain JSON, which lets a
    transport use one codec for both.

    `resolver` resolves Any type URLs and defaults to a registry holding only
    the well-known types. `payload_codec` serializes Any payloads.
    """

    NAME = 'jsonpb'

    def __init__(
        self,
        resolver: Resolver | None = None,
        marshal_options: MarshalOptions | None = None,
        unmarshal_options: UnmarshalOptions | None = None,
        payload_codec: str | Codec = 'msgpack',
    ) -> None:
        self.resolver = resolver if resolver is not None else TypeRegistry()
        self.marshal_options = marshal_options or MarshalOptions()
        self.unmarshal_options = unmarshal_options or UnmarshalOptions()
        self.payload_codec = create(payload_codec)

    def content_type(self, value: Any = None) -> str:
        """Always `application/json`."""
        return CONTENT_TYPE

    def delimiter(self) -> bytes:
        return b'\n'

    def encode(self, msg: Any) -> bytes:
        """Encode a message canonically, or any other value as plain JSON."""
        if not isinstance(msg, Message):
            return json.encode(msg)
        return self.encode_canonical(msg)

    def decode(self, data: bytes, descriptor: MessageDescriptor | None = None) -> Any:
        """Decode into a message of `descriptor`, or as plain JSON without one."""
        if descriptor is None:
            return loads(data)
        return self.decode_canonical(data, descriptor)

    def encode_canonical(self, msg: Message) -> bytes:
        encoder = Encoder(self.resolver, self.payload_codec, self.marshal_options)
        return encoder.encode(msg)

    def decode_canonical(self, data: bytes | str, descriptor: MessageDescriptor) -> Message:
        decoder = Decoder(self.resolver, self.payload_codec, self.unmarshal_options)
        return decoder.decode(data, descriptor)

    def encode_to(self, fp: IO[bytes], value: Any) -> None:
        """Write `value` to `fp` followed by the delimiter.

        Nothing is written if encoding fails.
        """
        data = self._encode(value)
        fp.write(data)
        fp.write(self.delimiter())


def _codec(resolver: Resolver | None, options: dict[str, Any], marshal: bool) -> JsonPbCodec:
    payload_codec = options.pop('payload_codec', 'msgpack')
    if marshal:
        return JsonPbCodec(
            resolver, marshal_options=MarshalOptions(**options), payload_codec=payload_codec
        )
    return JsonPbCodec(
        resolver, unmarshal_options=UnmarshalOptions(**options), payload_codec=payload_codec
    )


def encode_canonical(msg: Message, resolver: Resolver | None = None, **options: Any) -> bytes:
    """Encode `msg` as canonical JSON. `options` are `MarshalOptions` fields."""
    return _codec(resolver, options, marshal=True).encode_canonical(msg)


def decode_canonical(
    data: bytes | str,
    descriptor: MessageDescriptor,
    resolver: Resolver | None = None,
    **options: Any,
) -> Message:
    """Decode canonical JSON into a message. `options` are `UnmarshalOptions` fields."""
    return _codec(resolver, options, marshal=False).decode_canonical(data, descriptor)
