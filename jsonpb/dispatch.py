"""Lookup of the well-known types that have a special JSON form."""

from __future__ import annotations

import enum

from . import wkt


class WellKnown(enum.Enum):
    ANY = 'any'
    TIMESTAMP = 'timestamp'
    DURATION = 'duration'
    WRAPPER = 'wrapper'
    STRUCT = 'struct'
    LIST_VALUE = 'list_value'
    VALUE = 'value'
    FIELD_MASK = 'field_mask'
    EMPTY = 'empty'


_SHAPES: dict[str, WellKnown] = {
    wkt.ANY.full_name: WellKnown.ANY,
    wkt.TIMESTAMP.full_name: WellKnown.TIMESTAMP,
    wkt.DURATION.full_name: WellKnown.DURATION,
    **{d.full_name: WellKnown.WRAPPER for d in wkt.WRAPPERS},
    wkt.STRUCT.full_name: WellKnown.STRUCT,
    wkt.LIST_VALUE.full_name: WellKnown.LIST_VALUE,
    wkt.VALUE.full_name: WellKnown.VALUE,
    wkt.FIELD_MASK.full_name: WellKnown.FIELD_MASK,
    wkt.EMPTY.full_name: WellKnown.EMPTY,
}


def dispatch(full_name: str) -> WellKnown | None:
    """Return the special shape of `full_name`, or `None` for regular messages."""
    return _SHAPES.get(full_name)
