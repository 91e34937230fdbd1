"""
interfaces.py

duckchain CapabilitySetResolver

Computes which capability interfaces a class satisfies by walking its bases,
and enumerates the methods those interfaces declare.

A capability interface is any of:
- a typing.Protocol class
- an ABCMeta class that still has abstract methods
- a class marked with @capability_interface

Design Invariants:
- Pure functions of a class (no side effects, no caching)
- Never raises for a class that declares no interfaces
- The typing/abc machinery itself is never reported as an interface
"""

import abc
import inspect
import typing
from typing import Any, FrozenSet, Iterable, Optional, Set, Tuple

from duckchain.errors import InvalidInterfaceError
from duckchain.signature import InterfaceMethod, is_public_name

_MARKER = "__capability_interface__"

# Bases every interface inherits from that are not contracts themselves.
_MACHINERY = frozenset({object, typing.Protocol, typing.Generic, abc.ABC})


# =============================================================================
# Interface Classification
# =============================================================================

def capability_interface(cls: type) -> type:
    """
    Mark a plain class as a capability interface.

    Useful for contracts written as ordinary classes with no abstract
    methods. The mark is not inherited by subclasses.
    """
    if not isinstance(cls, type):
        raise InvalidInterfaceError(cls)
    setattr(cls, _MARKER, True)
    return cls


def is_capability_interface(cls: Any) -> bool:
    """Return True if cls is a capability interface."""
    if not isinstance(cls, type) or cls in _MACHINERY:
        return False
    own = vars(cls)
    if own.get(_MARKER, False):
        return True
    if own.get("_is_protocol", False):
        return True
    return isinstance(cls, abc.ABCMeta) and bool(getattr(cls, "__abstractmethods__", ()))


def is_protocol(cls: type) -> bool:
    return bool(vars(cls).get("_is_protocol", False)) and cls is not typing.Protocol


def check_interface(value: Any) -> type:
    """Validate a value explicitly declared as an interface."""
    if not isinstance(value, type):
        raise InvalidInterfaceError(value)
    if value in _MACHINERY:
        raise InvalidInterfaceError(
            value,
            f"{value.__qualname__} is typing/abc machinery, not an interface",
        )
    return value


# =============================================================================
# Resolution
# =============================================================================

def collect_interfaces(cls: Optional[type], into: Set[type]) -> Set[type]:
    """
    Recursively walk the bases of cls and add every interface found to into.

    Interfaces extended by interfaces and interfaces of superclasses are
    included. Returns into for convenience.
    """
    _walk(cls, into, set())
    return into


def _walk(cls: Optional[type], into: Set[type], seen: Set[type]) -> None:
    if cls is None:
        return
    for base in getattr(cls, "__bases__", ()):
        if base in seen:
            continue
        seen.add(base)
        if is_capability_interface(base):
            into.add(base)
        _walk(base, into, seen)


def resolve_interfaces(cls: Optional[type]) -> FrozenSet[type]:
    """
    Return every capability interface cls satisfies.

    A class that is itself an interface (a marked plain class can be
    instantiated) satisfies itself.
    """
    found: Set[type] = set()
    if cls is not None and is_capability_interface(cls):
        found.add(cls)
    collect_interfaces(cls, found)
    return frozenset(found)


def is_declared_implementor(cls: type, interface: type) -> bool:
    """
    Return True if cls honestly declares that it implements interface.

    Nominal subclassing and ABC.register count as declarations. A
    structural match against a Protocol does not.
    """
    if interface in cls.__mro__:
        return True
    if is_protocol(interface):
        return False
    if isinstance(interface, abc.ABCMeta):
        try:
            return issubclass(cls, interface)
        except TypeError:
            return False
    return False


# =============================================================================
# Declared Methods
# =============================================================================

def _is_method_declaration(attribute: Any) -> bool:
    return inspect.isfunction(attribute) or isinstance(attribute, (staticmethod, classmethod))


def interface_methods(interface: type) -> Tuple[InterfaceMethod, ...]:
    """
    Every method declared by interface and the interfaces it extends.

    The most-derived declaration wins per name. Result is sorted by name.
    """
    methods = {}
    for klass in reversed(interface.__mro__):
        if klass is not interface and not is_capability_interface(klass):
            continue
        for name, attribute in vars(klass).items():
            if not is_public_name(name) or not _is_method_declaration(attribute):
                continue
            methods[name] = InterfaceMethod(interface=klass, name=name, declaration=attribute)
    return tuple(methods[name] for name in sorted(methods))


def most_derived(interfaces: Iterable[type]) -> Tuple[type, ...]:
    """
    Drop every interface that another member of the set already extends.

    Ordered by qualified name so the same set always yields the same tuple.
    """
    unique = set(interfaces)
    # MRO membership, not issubclass(): non-runtime protocols reject class checks
    kept = [
        iface for iface in unique
        if not any(other is not iface and iface in other.__mro__ for other in unique)
    ]
    return tuple(sorted(kept, key=lambda c: (c.__module__, c.__qualname__)))
