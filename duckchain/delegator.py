"""
delegator.py

duckchain DelegatorFacade — Entry Points for Building Composites

Two ways to build a composite:

1. Subclass DynamicDelegator and write only the methods you want to
   override. Everything else tunnels through to the wrapped object::

       class LoudMap(DynamicDelegator):
           def put(self, key: str, value: Any) -> Optional[Any]:
               print("put called")
               return self.wrapped.put(key, value)

       m = LoudMap(SomeMap()).get_proxy()

   An override must repeat the parameter annotations of the interface
   method it replaces. Otherwise a wrapped object that declares the
   interface answers first and the override never runs.

2. Call one of the free functions with an explicit interface::

       duck = get_proxy(Duck, overrides, DuckImpl())
       source = coerce(io.StringIO("hello"), LineSource)

Links are always added overrides first, then delegates in the order
given. None delegates are skipped.
"""

from collections import abc
from typing import Any, Generic, Iterable, Optional, Tuple, TypeVar, Union

from duckchain.chain import DelegationChain
from duckchain.errors import InvalidInterfaceError
from duckchain.interfaces import check_interface

T = TypeVar("T")


class DynamicDelegator(Generic[T]):
    """
    Base class for wrappers that override a few methods of another object.

    The proxy returned by get_proxy() implements every interface declared
    by the wrapper class, by the wrapped object, and by
    get_additional_interfaces(). A call is answered by the wrapper if it
    has a matching method, otherwise by the wrapped object.

    Attributes:
        wrapped: The object being wrapped. May be None, or an interface
            class when there is no backing object at all; the wrapper
            then implements the interface from scratch.
        this_proxy: The proxy returned by the last get_proxy() call. Pass
            it wherever you would otherwise pass self.
    """

    def __init__(self, wrapped: Union[T, type, None] = None):
        self.wrapped = wrapped
        self.this_proxy: Optional[T] = None

    def get_proxy(self) -> T:
        """Tie this wrapper and the wrapped object into one proxy."""
        chain = DelegationChain(self)
        if isinstance(self.wrapped, type):
            chain.add_interface(self.wrapped)
        elif self.wrapped is not None:
            chain.add(self.wrapped)
        chain.add_interfaces(self.get_additional_interfaces())
        self.this_proxy = chain.new_proxy_instance()
        return self.this_proxy

    def get_additional_interfaces(self) -> Tuple[type, ...]:
        """
        Extra interfaces the proxy should implement.

        Override to introduce interfaces that neither the wrapper nor
        the wrapped object declares.
        """
        return ()


def _as_tuple(interfaces: Union[type, Iterable[type]]) -> Tuple[type, ...]:
    if isinstance(interfaces, (type, str)) or not isinstance(interfaces, abc.Iterable):
        return (interfaces,)
    return tuple(interfaces)


def implement(
    interfaces: Union[type, Iterable[type]],
    *delegates: Any,
    name: Optional[str] = None,
) -> Any:
    """
    Build a proxy for interfaces backed by delegates in priority order.

    With no delegates the proxy still advertises the interfaces; every
    call then raises UnsupportedCapabilityError.

    Every distinct name is a separate cached class until
    duckchain.proxy.clear_cache() is called.
    """
    chain = DelegationChain()
    for delegate in delegates:
        if delegate is not None:
            chain.add(delegate)
    chain.add_interfaces(check_interface(iface) for iface in _as_tuple(interfaces))
    return chain.new_proxy_instance(name=name)


def get_proxy(interface: type, wrapper: Any, *delegates: Any) -> Any:
    """Proxy for interface answered by wrapper first, then each delegate."""
    return implement(interface, wrapper, *delegates)


def coerce(obj: Any, *interfaces: type) -> Any:
    """Make obj usable as interfaces it never declared, by matching methods."""
    if not interfaces:
        raise InvalidInterfaceError(interfaces, "coerce() needs at least one interface")
    return implement(interfaces, obj)
