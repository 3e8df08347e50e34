"""Message to canonical JSON encoding."""

from __future__ import annotations

import base64
import contextlib
import math
import struct
from collections.abc import Callable, Iterator
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from . import errors, logs, names, tokens, validate, wkt
from .descriptor import INT_RANGES, FieldDescriptor, Kind
from .dispatch import WellKnown, dispatch
from .message import Message, is_zero
from .options import MarshalOptions
from .utils.format import format_exc, format_item

if TYPE_CHECKING:
    from .codec import Codec
    from .registry import Resolver

log = logs.get(__name__)


def _round_float32(value: float) -> float:
    try:
        return struct.unpack('<f', struct.pack('<f', value))[0]
    except OverflowError:
        raise errors.RangeError('float', 'value', value) from None


def format_float(value: float, kind: Kind = Kind.DOUBLE) -> str:
    """Format a finite float the way JavaScript's `Number.toString` would.

    Floats use the shortest digits that round-trip at 32-bit precision.
    Exponent notation is used below 1e-6 and from 1e21 up.
    """
    if kind is Kind.FLOAT:
        value = _round_float32(value)
        for precision in range(1, 10):
            text = f'{value:.{precision}g}'
            with contextlib.suppress(errors.RangeError):
                if _round_float32(float(text)) == value:
                    break
    else:
        text = repr(value)
    number = Decimal(text).normalize()
    magnitude = abs(value)
    if magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21):
        return format(number, 'e')
    return format(number, 'f')


class Encoder:
    """Writes a single message as canonical JSON.

    An encoder is used for one call only; it owns the output buffer.
    """

    def __init__(
        self,
        resolver: Resolver,
        payload_codec: Codec,
        options: MarshalOptions | None = None,
    ) -> None:
        self._resolver = resolver
        self._payload = payload_codec
        self._opts = options or MarshalOptions()
        self._writer = tokens.Writer(self._opts.indent)
        self._depth = 0

    def encode(self, msg: Message) -> bytes:
        self.marshal_message(msg)
        return self._writer.getvalue()

    @contextlib.contextmanager
    def _nested(self) -> Iterator[None]:
        self._depth += 1
        if self._depth > self._opts.max_depth:
            raise errors.DepthExceeded(self._opts.max_depth)
        try:
            yield
        finally:
            self._depth -= 1

    def marshal_message(self, msg: Message) -> None:
        with self._nested():
            shape = dispatch(msg.descriptor.full_name)
            if shape is None:
                self._marshal_fields(msg)
            else:
                _WELL_KNOWN[shape](self, msg)

    ##
    ## regular messages
    ##

    def _marshal_fields(self, msg: Message, type_url: str | None = None) -> None:
        opts = self._opts
        w = self._writer
        w.start_object()

        if type_url is not None:
            w.write_name('@type')
            w.write_string(type_url)

        for field in msg.descriptor.fields:
            if msg.has(field.name):
                value = msg.get(field.name)
                if not field.has_presence and is_zero(field, value) and not opts.emit_unpopulated:
                    continue
            elif opts.emit_unpopulated and not field.oneof:
                value = None if field.has_presence else msg.get(field.name)
            else:
                continue

            w.write_name(field.name if opts.use_proto_names else field.camel_name)
            where = f'{msg.descriptor.full_name}.{field.name}'
            if field.is_map:
                self._marshal_map(field, value, where)
            elif field.is_list:
                self._marshal_list(field, value, where)
            elif value is None:
                w.write_null()
            else:
                self._marshal_singular(field, value, where)

        w.end_object()

    def _marshal_list(self, field: FieldDescriptor, values: list[Any], where: str) -> None:
        w = self._writer
        w.start_array()
        for i, value in enumerate(values):
            self._marshal_singular(field, value, format_item(where, i))
        w.end_array()

    def _marshal_map(self, field: FieldDescriptor, values: dict[Any, Any], where: str) -> None:
        w = self._writer
        w.start_object()
        for key, value in sorted(values.items(), key=lambda item: item[0]):
            if field.key_kind is Kind.BOOL:
                name = 'true' if key else 'false'
            else:
                name = str(key)
            w.write_name(name)
            self._marshal_singular(field, value, format_item(where, key))
        w.end_object()

    def _marshal_singular(self, field: FieldDescriptor, value: Any, where: str) -> None:
        w = self._writer
        kind = field.kind

        if kind is Kind.MESSAGE:
            if not isinstance(value, Message):
                raise errors.EncodeError(f'{where}: expected message, got {value!r}')
            self.marshal_message(value)

        elif kind is Kind.ENUM:
            assert field.enum_type is not None
            if field.enum_type.full_name == wkt.NULL_VALUE.full_name:
                w.write_null()
                return
            _expect(where, value, int, kind)
            enum_value = field.enum_type.by_number(value)
            if self._opts.use_enum_numbers or enum_value is None:
                w.write_number(str(value))
            else:
                w.write_string(enum_value.name)

        elif kind is Kind.BOOL:
            _expect(where, value, bool, kind)
            w.write_bool(value)

        elif kind is Kind.STRING:
            _expect(where, value, str, kind)
            w.write_string(value)

        elif kind is Kind.BYTES:
            _expect(where, value, (bytes, bytearray, memoryview), kind)
            w.write_string(base64.b64encode(value).decode('ascii'))

        elif kind.is_float:
            _expect(where, value, (int, float), kind)
            value = float(value)
            if math.isnan(value):
                w.write_string('NaN')
            elif math.isinf(value):
                w.write_string('Infinity' if value > 0 else '-Infinity')
            else:
                w.write_number(format_float(value, kind))

        else:
            _expect(where, value, int, kind)
            low, high = INT_RANGES[kind]
            if not low <= value <= high:
                raise errors.RangeError(where, kind.value, value)
            # 64-bit integers do not survive a trip through a JSON double
            if kind.is_64bit:
                w.write_string(str(value))
            else:
                w.write_number(str(value))

    ##
    ## well-known types
    ##

    def _marshal_any(self, msg: Message) -> None:
        if not msg.has('type_url'):
            if not msg.has('value'):
                self._writer.start_object()
                self._writer.end_object()
                return
            raise errors.MissingTypeUrl(f'{wkt.ANY.full_name}: type_url is not set')

        type_url = msg.get('type_url')
        descriptor = self._resolver.resolve(type_url)
        if log.isEnabledFor(logs.DEBUG):
            log.debug('any: %s -> %s', type_url, descriptor.full_name)

        try:
            inner = self._payload.decode(msg.get('value'), descriptor)
        except errors.JsonPbError:
            raise
        except Exception as exc:
            raise errors.EncodeError(
                f'{wkt.ANY.full_name}: unable to unmarshal {type_url!r}: {format_exc(exc)}'
            ) from exc

        if dispatch(descriptor.full_name) is not None:
            w = self._writer
            w.start_object()
            w.write_name('@type')
            w.write_string(type_url)
            w.write_name('value')
            self.marshal_message(inner)
            w.end_object()
            return

        with self._nested():
            self._marshal_fields(inner, type_url)

    def _marshal_timestamp(self, msg: Message) -> None:
        seconds, nanos = msg.get('seconds'), msg.get('nanos')
        validate.check_timestamp(seconds, nanos)
        t = wkt.EPOCH + timedelta(seconds=seconds)
        text = (
            f'{t.year:04d}-{t.month:02d}-{t.day:02d}'
            f'T{t.hour:02d}:{t.minute:02d}:{t.second:02d}.{nanos:09d}'
        )
        self._writer.write_string(validate.trim_fraction(text) + 'Z')

    def _marshal_duration(self, msg: Message) -> None:
        seconds, nanos = msg.get('seconds'), msg.get('nanos')
        validate.check_duration(seconds, nanos)
        sign = ''
        if seconds < 0 or nanos < 0:
            sign, seconds, nanos = '-', -seconds, -nanos
        text = f'{sign}{seconds}.{nanos:09d}'
        self._writer.write_string(validate.trim_fraction(text) + 's')

    def _marshal_wrapper(self, msg: Message) -> None:
        field = msg.descriptor.field('value')
        self._marshal_singular(field, msg.get('value'), f'{msg.descriptor.full_name}.value')

    def _marshal_struct(self, msg: Message) -> None:
        field = msg.descriptor.field('fields')
        self._marshal_map(field, msg.get('fields'), f'{msg.descriptor.full_name}.fields')

    def _marshal_list_value(self, msg: Message) -> None:
        field = msg.descriptor.field('values')
        self._marshal_list(field, msg.get('values'), f'{msg.descriptor.full_name}.values')

    def _marshal_value(self, msg: Message) -> None:
        name = msg.which_oneof('kind')
        if name is None:
            raise errors.OneofUnset(f'{wkt.VALUE.full_name}: none of the oneof fields is set')
        field = msg.descriptor.field(name)
        value = msg.get(name)
        where = f'{wkt.VALUE.full_name}.{name}'
        if name == 'number_value' and not math.isfinite(value):
            raise errors.NumericInvalid(f'{where}: invalid {value} value')
        self._marshal_singular(field, value, where)

    def _marshal_field_mask(self, msg: Message) -> None:
        paths = []
        for path in msg.get('paths'):
            if not names.is_valid_path(path):
                raise errors.InvalidPath(path)
            camel = names.to_camel(path)
            if names.to_snake(camel) != path:
                raise errors.IrreversiblePath(path)
            paths.append(camel)
        self._writer.write_string(','.join(paths))

    def _marshal_empty(self, msg: Message) -> None:
        self._writer.start_object()
        self._writer.end_object()


_WELL_KNOWN: dict[WellKnown, Callable[[Encoder, Message], None]] = {
    WellKnown.ANY: Encoder._marshal_any,
    WellKnown.TIMESTAMP: Encoder._marshal_timestamp,
    WellKnown.DURATION: Encoder._marshal_duration,
    WellKnown.WRAPPER: Encoder._marshal_wrapper,
    WellKnown.STRUCT: Encoder._marshal_struct,
    WellKnown.LIST_VALUE: Encoder._marshal_list_value,
    WellKnown.VALUE: Encoder._marshal_value,
    WellKnown.FIELD_MASK: Encoder._marshal_field_mask,
    WellKnown.EMPTY: Encoder._marshal_empty,
}


def _expect(where: str, value: Any, types: type | tuple[type, ...], kind: Kind) -> None:
    if types is int and isinstance(value, bool):
        raise errors.EncodeError(f'{where}: invalid {kind.value} value {value!r}')
    if not isinstance(value, types):
        raise errors.EncodeError(f'{where}: invalid {kind.value} value {value!r}')
