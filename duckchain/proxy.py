"""
proxy.py

duckchain Proxy Synthesis

Builds one object that is an instance of every interface in a set and
routes each interface method to a dispatcher's invoke().

The proxy class subclasses the most-derived interfaces, so isinstance()
holds for the whole set, and defines one forwarding method per declared
interface method. Classes are cached per (bases, name).
"""

import logging
import threading
import types
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Tuple

from duckchain.errors import ProxySynthesisError
from duckchain.interfaces import interface_methods, most_derived
from duckchain.signature import InterfaceMethod

logger = logging.getLogger(__name__)

_DISPATCHER_SLOT = "_duckchain_dispatcher"
_PROXY_MARKER = "__duckchain_proxy__"

_cache_lock = threading.Lock()
_class_cache: Dict[Tuple[Tuple[type, ...], str], type] = {}


class Dispatcher(Protocol):
    """Anything that can answer a call to an interface method."""

    def invoke(
        self,
        method: InterfaceMethod,
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        ...


# =============================================================================
# Class Synthesis
# =============================================================================

def _forwarder(method: InterfaceMethod) -> Callable:
    def forward(self, *args, **kwargs):
        dispatcher = object.__getattribute__(self, _DISPATCHER_SLOT)
        return dispatcher.invoke(method, args, kwargs)

    forward.__name__ = method.name
    forward.__qualname__ = f"{method.interface.__qualname__}.{method.name}"
    forward.__doc__ = method.doc
    forward.__wrapped_method__ = method
    return forward


def _proxy_init(self, dispatcher: Dispatcher) -> None:
    object.__setattr__(self, _DISPATCHER_SLOT, dispatcher)


def _proxy_repr(self) -> str:
    dispatcher = object.__getattribute__(self, _DISPATCHER_SLOT)
    links = len(dispatcher) if hasattr(dispatcher, "__len__") else "?"
    return f"<{type(self).__qualname__} links={links}>"


def _build_namespace(bases: Tuple[type, ...]) -> Dict[str, Any]:
    namespace: Dict[str, Any] = {}
    for base in bases:
        for method in interface_methods(base):
            # Same name on two interfaces: the later base wins
            namespace[method.name] = _forwarder(method)

    namespace["__slots__"] = (_DISPATCHER_SLOT,)
    namespace["__init__"] = _proxy_init
    namespace.setdefault("__repr__", _proxy_repr)
    namespace[_PROXY_MARKER] = True
    return namespace


def _default_name(bases: Tuple[type, ...]) -> str:
    return "".join(base.__name__ for base in bases) + "Proxy"


def proxy_class(interfaces: Iterable[type], name: Optional[str] = None) -> type:
    """
    Return the proxy class for a set of interfaces, creating it if needed.

    Classes are cached per (bases, name) for the life of the process. Each
    distinct name adds a class; callers generating names call clear_cache()
    to release them.

    Raises:
        ProxySynthesisError: if the interfaces cannot share one class
    """
    interfaces = frozenset(interfaces)
    bases = most_derived(interfaces)
    name = name or _default_name(bases)
    key = (bases, name)

    with _cache_lock:
        cached = _class_cache.get(key)
        if cached is not None:
            logger.debug("Reusing proxy class %s", name)
            return cached

        namespace = _build_namespace(bases)
        try:
            cls = types.new_class(name, bases, {}, lambda ns: ns.update(namespace))
        except TypeError as e:
            raise ProxySynthesisError(interfaces, e) from e

        _class_cache[key] = cls
        logger.debug(
            "Synthesized proxy class %s over %d interfaces (%d forwarded methods)",
            name,
            len(bases),
            sum(1 for v in namespace.values() if hasattr(v, "__wrapped_method__")),
        )
        return cls


# =============================================================================
# Public API
# =============================================================================

def new_proxy(
    interfaces: Iterable[type],
    dispatcher: Dispatcher,
    *,
    name: Optional[str] = None,
) -> Any:
    """
    Create an object implementing every interface, backed by dispatcher.

    A name other than the default creates and caches a separate class;
    see proxy_class().

    Raises:
        ProxySynthesisError: if the class cannot be created or instantiated
            (for example an interface with abstract properties)
    """
    interfaces = frozenset(interfaces)
    cls = proxy_class(interfaces, name)
    try:
        return cls(dispatcher)
    except TypeError as e:
        raise ProxySynthesisError(interfaces, e) from e


def is_proxy(obj: Any) -> bool:
    return bool(getattr(type(obj), _PROXY_MARKER, False))


def chain_of(proxy: Any) -> Dispatcher:
    """Return the dispatcher behind a proxy."""
    if not is_proxy(proxy):
        raise TypeError(f"{type(proxy).__qualname__} is not a duckchain proxy")
    return object.__getattribute__(proxy, _DISPATCHER_SLOT)


def clear_cache() -> None:
    """Drop every cached proxy class. Existing proxies keep working."""
    with _cache_lock:
        _class_cache.clear()
