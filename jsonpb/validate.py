"""Range checks and fractional formatting shared by Duration and Timestamp."""

from __future__ import annotations

from . import errors

DURATION = 'google.protobuf.Duration'
TIMESTAMP = 'google.protobuf.Timestamp'

MAX_NANOS = 999_999_999
MAX_DURATION_SECONDS = 315_576_000_000

# 0001-01-01T00:00:00Z and 9999-12-31T23:59:59Z
MIN_TIMESTAMP_SECONDS = -62_135_596_800
MAX_TIMESTAMP_SECONDS = 253_402_300_799


def check_duration(seconds: int, nanos: int) -> None:
    """Raise if `seconds`/`nanos` do not form a valid duration."""
    if not -MAX_DURATION_SECONDS <= seconds <= MAX_DURATION_SECONDS:
        raise errors.RangeError(DURATION, 'seconds', seconds)
    if not -MAX_NANOS <= nanos <= MAX_NANOS:
        raise errors.RangeError(DURATION, 'nanos', nanos)
    if (seconds > 0 and nanos < 0) or (seconds < 0 and nanos > 0):
        raise errors.SignMismatch(DURATION, seconds, nanos)


def check_timestamp(seconds: int, nanos: int) -> None:
    """Raise if `seconds`/`nanos` do not form a valid timestamp."""
    if not MIN_TIMESTAMP_SECONDS <= seconds <= MAX_TIMESTAMP_SECONDS:
        raise errors.RangeError(TIMESTAMP, 'seconds', seconds)
    if not 0 <= nanos <= MAX_NANOS:
        raise errors.RangeError(TIMESTAMP, 'nanos', nanos)


def trim_fraction(text: str) -> str:
    """Trim a `.nnnnnnnnn` suffix of `text` to 9, 6, 3 or 0 digits.

    `text` must end in a dot followed by exactly nine digits.
    """
    text = text.removesuffix('000')
    text = text.removesuffix('000')
    return text.removesuffix('.000')
