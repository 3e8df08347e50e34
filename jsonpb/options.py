"""Encoding and decoding options."""

from __future__ import annotations

import msgspec

DEFAULT_MAX_DEPTH = 100


class MarshalOptions(msgspec.Struct, frozen=True, kw_only=True):
    # use proto field names instead of lowerCamelCase JSON names
    use_proto_names: bool = False
    # emit fields without presence that hold their zero value
    emit_unpopulated: bool = False
    # emit enum values as numbers instead of names
    use_enum_numbers: bool = False
    indent: str | None = None
    max_depth: int = DEFAULT_MAX_DEPTH


class UnmarshalOptions(msgspec.Struct, frozen=True, kw_only=True):
    # ignore unknown object members instead of failing
    discard_unknown: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
