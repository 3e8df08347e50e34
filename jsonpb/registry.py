"""Registries for codec classes and message types."""

from __future__ import annotations

import importlib
from collections.abc import Iterable
from threading import Lock
from typing import Generic, Protocol, TypeVar

from . import errors, logs
from .descriptor import MessageDescriptor

log = logs.get(__name__)

T = TypeVar('T')


class Registry(Generic[T]):
    """Keeps a registry of subclasses by name.

    Unknown names are looked up by importing `<package>.<name>`, which
    registers any subclasses that module defines.
    """

    def __init__(self, package: str, base_type: type[T]) -> None:
        self._package = package
        self._base_type = base_type
        self._registry: dict[str, type[T]] = {}

    def __getitem__(self, name: str) -> type[T]:
        try:
            return self._registry[name]
        except KeyError:
            pass
        try:
            importlib.import_module(f'{self._package}.{name}')
        except ImportError as exc:
            raise KeyError(name) from exc
        return self._registry[name]

    def __setitem__(self, name: str, cls: type[T]) -> None:
        if not issubclass(cls, self._base_type):
            raise TypeError(f'{cls.__name__} is not a {self._base_type.__name__}')
        self._registry[name] = cls

    def __contains__(self, name: str) -> bool:
        return name in self._registry

    def names(self) -> tuple[str, ...]:
        """Return all registered names in insertion order."""
        return tuple(self._registry.keys())


class Resolver(Protocol):
    """Anything that can map a type URL to a message descriptor."""

    def resolve(self, type_url: str) -> MessageDescriptor: ...


class TypeRegistry:
    """Message descriptors by full name, resolvable by type URL.

    Registration takes a lock. Lookups do not, so a registry may be shared by
    concurrent codecs once it is populated.
    """

    def __init__(
        self, descriptors: Iterable[MessageDescriptor] = (), include_well_known: bool = True
    ) -> None:
        self._lock = Lock()
        self._types: dict[str, MessageDescriptor] = {}

        if include_well_known:
            from . import wkt

            self.register(*wkt.ALL)
        self.register(*descriptors)

    def register(self, *descriptors: MessageDescriptor) -> None:
        with self._lock:
            for descriptor in descriptors:
                existing = self._types.get(descriptor.full_name)
                if existing is descriptor:
                    continue
                if existing is not None:
                    raise errors.RegistryError(f'duplicate type: {descriptor.full_name}')
                self._types[descriptor.full_name] = descriptor
                if log.isEnabledFor(logs.DEBUG):
                    log.debug('registered type: %s', descriptor.full_name)

    def find(self, full_name: str) -> MessageDescriptor:
        try:
            return self._types[full_name]
        except KeyError:
            raise errors.UnresolvableType(full_name) from None

    def resolve(self, type_url: str) -> MessageDescriptor:
        """Return the descriptor named by the last path segment of `type_url`."""
        full_name = type_url.rpartition('/')[2]
        if not full_name:
            raise errors.UnresolvableType(type_url)
        try:
            return self._types[full_name]
        except KeyError:
            raise errors.UnresolvableType(type_url) from None

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._types

    def names(self) -> tuple[str, ...]:
        return tuple(self._types)
