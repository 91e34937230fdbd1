"""
chain.py

duckchain DelegationChain — Chain of Responsibility over Unrelated Objects

A DelegationChain holds backing objects in priority order together with
the set of capability interfaces they collectively satisfy. Every call on
a composite built from the chain is answered by exactly one backing object.

Dispatch order for a requested interface method:
1. Links in priority order; a link answers if its class declares the
   method's interface, or else if it has a method of identical
   (name, parameter types)
2. Links in priority order; first method of that name accepting the
   arguments. A builtin without an introspectable signature is called
   directly, and a TypeError raised by the call itself counts as a
   rejection
3. UnsupportedCapabilityError

Design Invariants:
- Insertion order is priority order
- The interface set only grows
- Links are never reordered or removed
- Backing failures propagate unchanged
- Safe for concurrent invoke() once construction is finished
"""

import inspect
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple

from duckchain.errors import (
    ChainImmutabilityError,
    InvalidBackingObjectError,
    UnsupportedCapabilityError,
)
from duckchain.interfaces import check_interface, is_declared_implementor, resolve_interfaces
from duckchain.proxy import new_proxy
from duckchain.signature import InterfaceMethod, MethodSignature, is_public_name

logger = logging.getLogger(__name__)

_MISS = object()


# =============================================================================
# ChainLink
# =============================================================================

def _is_invocable(attribute: Any) -> bool:
    return (
        inspect.isfunction(attribute)
        or isinstance(attribute, (staticmethod, classmethod))
        or inspect.ismethoddescriptor(attribute)
        or inspect.isbuiltin(attribute)
    )


def _index_methods(obj: Any) -> Dict[MethodSignature, Callable]:
    """Index the publicly invocable methods of obj's class by signature."""
    index: Dict[MethodSignature, Callable] = {}
    cls = type(obj)
    for name in dir(cls):
        if not is_public_name(name):
            continue
        try:
            attribute = inspect.getattr_static(cls, name)
        except AttributeError:
            continue
        if not _is_invocable(attribute):
            continue
        handle = getattr(obj, name, None)
        if not callable(handle):
            continue
        signature = MethodSignature.of_bound(name, handle)
        if signature is None:
            continue
        index[signature] = handle
    return index


class ChainLink:
    """
    One backing object plus an index of its public methods.

    Attributes:
        object: The backing object (referenced, never owned)
        methods: Read-only view of the signature index
    """

    __slots__ = ('_object', '_methods', '_frozen')

    def __init__(self, obj: Any):
        if obj is None:
            raise InvalidBackingObjectError("None cannot back a chain link")

        object.__setattr__(self, '_object', obj)
        object.__setattr__(self, '_methods', _index_methods(obj))
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise ChainImmutabilityError(f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, '_frozen', False):
            raise ChainImmutabilityError(f"delete attribute '{name}'")
        object.__delattr__(self, name)

    @property
    def object(self) -> Any:
        return self._object

    def get_object(self) -> Any:
        return self._object

    @property
    def methods(self) -> Mapping[MethodSignature, Callable]:
        return dict(self._methods)

    def lookup(self, signature: MethodSignature) -> Optional[Callable]:
        """Return the bound method indexed under signature, or None."""
        return self._methods.get(signature)

    def __contains__(self, signature: object) -> bool:
        return signature in self._methods

    def __repr__(self) -> str:
        return f"ChainLink({type(self._object).__qualname__}, methods={len(self._methods)})"


# =============================================================================
# DelegationChain
# =============================================================================

class DelegationChain:
    """
    Ordered backing objects plus the interfaces they satisfy.

    Build the chain once with add()/add_interface(), then hand it to a
    proxy. Mutators replace the link tuple and interface set wholesale,
    so a concurrent invoke() always sees a consistent snapshot.
    """

    __slots__ = ('_links', '_interfaces')

    def __init__(self, *objects: Any):
        self._links: Tuple[ChainLink, ...] = ()
        self._interfaces: FrozenSet[type] = frozenset()
        for obj in objects:
            self.add(obj)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def add(self, obj: Any) -> "DelegationChain":
        """Append obj at the lowest priority and absorb its interfaces."""
        link = ChainLink(obj)
        found = resolve_interfaces(type(obj))
        self._links = self._links + (link,)
        self._interfaces = self._interfaces | found
        logger.debug(
            "Added link %d: %s (%d methods, %d interfaces)",
            len(self._links) - 1,
            type(obj).__qualname__,
            len(link.methods),
            len(found),
        )
        return self

    def add_interface(self, interface: type) -> "DelegationChain":
        """Declare an interface the composite advertises."""
        self._interfaces = self._interfaces | {check_interface(interface)}
        logger.debug("Declared interface %s", interface.__qualname__)
        return self

    def add_interfaces(self, interfaces: Iterable[type]) -> "DelegationChain":
        checked = {check_interface(iface) for iface in interfaces}
        self._interfaces = self._interfaces | checked
        return self

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_interfaces(self) -> FrozenSet[type]:
        return self._interfaces

    @property
    def interfaces(self) -> FrozenSet[type]:
        return self._interfaces

    @property
    def links(self) -> Tuple[ChainLink, ...]:
        return self._links

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the backing objects in priority order."""
        return (link.object for link in self._links)

    def __repr__(self) -> str:
        names = ", ".join(type(link.object).__qualname__ for link in self._links)
        return f"DelegationChain([{names}], interfaces={len(self._interfaces)})"

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def invoke(
        self,
        method: InterfaceMethod,
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Answer a call to an interface method from the first capable link.

        Args:
            method: The interface method the composite was called with
            args: Positional arguments, without self
            kwargs: Keyword arguments

        Returns:
            Whatever the winning backing method returns

        Raises:
            UnsupportedCapabilityError: if no link can answer the call
        """
        if kwargs is None:
            kwargs = {}
        links = self._links

        # Indexed pass: a declared implementor, or else an exact signature
        for position, link in enumerate(links):
            if is_declared_implementor(type(link.object), method.interface):
                logger.debug("%s -> link %d (declared)", method, position)
                return getattr(link.object, method.name)(*args, **kwargs)

            handle = link.lookup(method.signature)
            if handle is not None:
                logger.debug("%s -> link %d (signature)", method, position)
                return handle(*args, **kwargs)

        # Same name, arguments bind
        for position, link in enumerate(links):
            result = self._invoke_by_name(position, link, method, args, kwargs)
            if result is not _MISS:
                return result

        logger.debug("%s unsupported by %d links", method, len(links))
        raise UnsupportedCapabilityError(method)

    @staticmethod
    def _invoke_by_name(
        position: int,
        link: ChainLink,
        method: InterfaceMethod,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
    ) -> Any:
        try:
            handle = getattr(link.object, method.name)
        except AttributeError:
            return _MISS
        if not callable(handle):
            logger.debug("%s: link %d attribute is not callable", method, position)
            return _MISS

        try:
            signature = inspect.signature(handle)
        except (TypeError, ValueError):
            return DelegationChain._invoke_opaque(position, handle, method, args, kwargs)

        try:
            signature.bind(*args, **kwargs)
        except TypeError:
            logger.debug("%s: link %d rejects the arguments", method, position)
            return _MISS

        logger.debug("%s -> link %d (by name)", method, position)
        return handle(*args, **kwargs)

    @staticmethod
    def _invoke_opaque(
        position: int,
        handle: Callable,
        method: InterfaceMethod,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
    ) -> Any:
        """Call a handle whose signature cannot be introspected (some builtins)."""
        logger.debug("%s -> link %d (by name, no signature)", method, position)
        try:
            return handle(*args, **kwargs)
        except TypeError as e:
            # No Python frame below this one: the call itself rejected the arguments
            if e.__traceback__ is not None and e.__traceback__.tb_next is None:
                logger.debug("%s: link %d rejects the arguments", method, position)
                return _MISS
            raise

    # -------------------------------------------------------------------------
    # Composite
    # -------------------------------------------------------------------------

    def new_proxy_instance(self, name: Optional[str] = None) -> Any:
        """Synthesize a composite advertising every interface of this chain."""
        return new_proxy(self._interfaces, self, name=name)
