"""Helpers for configuring and using project logging."""

from __future__ import annotations

from logging import DEBUG, INFO, Formatter, StreamHandler, getLogger

get = getLogger
log = get(__name__)

__all__ = ['DEBUG', 'INFO', 'get', 'init']


def init(debug_level: int = 0) -> None:
    """Initializes simple logging defaults.

    A `debug_level` of 1 enables debug output for the package, 2 also enables
    it for the type registry, which is chatty when many types are registered.
    """
    root_log = get()

    if root_log.handlers:
        return

    fmt = '%(levelname).1s %(asctime)s . %(message)s'
    formatter = Formatter(fmt)

    handler = StreamHandler()
    handler.setFormatter(formatter)

    root_log.addHandler(handler)
    root_log.setLevel(DEBUG if debug_level > 0 else INFO)

    registry_log = get('jsonpb.registry')
    registry_log.setLevel(DEBUG if debug_level > 1 else INFO)
