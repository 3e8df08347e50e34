"""Codec base classes and helpers."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any

from .. import errors, logs, utils
from ..registry import Registry

if TYPE_CHECKING:
    from ..descriptor import MessageDescriptor

log = logs.get(__name__)


def create(name: str | Codec, **kwargs: Any) -> Codec:
    """Return a codec by name or pass through existing instances."""
    if isinstance(name, Codec):
        return name
    try:
        cls = REGISTRY[name]
    except KeyError:
        raise errors.RegistryError(f'unknown codec: {name!r}') from None
    if log.isEnabledFor(logs.DEBUG):
        log.debug('codec: %s', name)
    return cls(**kwargs)


class Codec(abc.ABC):
    """Base class for codecs that know how to encode/decode messages."""

    NAME: str

    def __init_subclass__(cls) -> None:
        REGISTRY[cls.NAME] = cls

    @abc.abstractmethod
    def encode(self, msg: Any) -> bytes:
        """Serialize `msg` into bytes."""
        raise NotImplementedError('abstract')

    @abc.abstractmethod
    def decode(self, data: bytes, descriptor: MessageDescriptor | None = None) -> Any:
        """Deserialize bytes, into a message of `descriptor` if given."""
        raise NotImplementedError('abstract')

    def _encode(self, msg: Any) -> bytes:
        """Wrapper that provides encoding error context. Used internally."""
        try:
            return self.encode(msg)
        except errors.JsonPbError:
            raise
        except Exception as exc:
            raise errors.EncodeError(f'{exc}: msg={utils.format.format_value(msg)}') from exc

    def _decode(self, data: bytes, descriptor: MessageDescriptor | None = None) -> Any:
        """Wrapper that provides decoding error context. Used internally."""
        try:
            return self.decode(data, descriptor)
        except errors.JsonPbError:
            raise
        except Exception as exc:
            raise errors.DecodeError(f'{exc}: data={utils.format.format_value(data)}') from exc


REGISTRY = Registry(__name__, Codec)
