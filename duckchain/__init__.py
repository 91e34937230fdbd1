"""
duckchain — Composite Objects from Unrelated Parts
==================================================

duckchain combines several backing objects into one proxy that implements
every capability interface they implement or declare. Each call on the
proxy is answered by the first backing object able to satisfy it, so a
wrapper only needs the few methods it actually overrides.

What's Public
-------------
Everything exported in ``__all__``:

- **Facade**: DynamicDelegator, get_proxy, implement, coerce
- **Chain**: DelegationChain, ChainLink
- **Signatures**: MethodSignature, InterfaceMethod
- **Interfaces**: capability_interface, resolve_interfaces, ...
- **Proxies**: new_proxy, is_proxy, chain_of
- **Exceptions**: DelegationError and subclasses

Example
-------
::

    from typing import Protocol
    from duckchain import DynamicDelegator

    class Duck(Protocol):
        def speak(self) -> str: ...
        def can_fly(self) -> bool: ...

    class Daffy(DynamicDelegator):
        def speak(self) -> str:
            return "You're despicable"

    daffy = Daffy(DuckImpl()).get_proxy()
    daffy.speak()    # "You're despicable"
    daffy.can_fly()  # answered by DuckImpl
"""

__version__ = "1.0.0"

__all__ = [
    # --- Package Metadata ---
    "__version__",

    # --- Facade ---
    "DynamicDelegator",
    "get_proxy",
    "implement",
    "coerce",

    # --- Chain ---
    "DelegationChain",
    "ChainLink",

    # --- Signatures ---
    "MethodSignature",
    "InterfaceMethod",
    "NON_DISPATCHED_DUNDERS",

    # --- Interfaces ---
    "capability_interface",
    "is_capability_interface",
    "is_declared_implementor",
    "resolve_interfaces",
    "collect_interfaces",
    "interface_methods",

    # --- Proxies ---
    "new_proxy",
    "is_proxy",
    "chain_of",

    # --- Exceptions ---
    "DelegationError",
    "UnsupportedCapabilityError",
    "InvalidInterfaceError",
    "InvalidBackingObjectError",
    "ProxySynthesisError",
    "ChainImmutabilityError",
    "format_error",
]

from duckchain.chain import ChainLink, DelegationChain
from duckchain.delegator import DynamicDelegator, coerce, get_proxy, implement
from duckchain.errors import (
    ChainImmutabilityError,
    DelegationError,
    InvalidBackingObjectError,
    InvalidInterfaceError,
    ProxySynthesisError,
    UnsupportedCapabilityError,
    format_error,
)
from duckchain.interfaces import (
    capability_interface,
    collect_interfaces,
    interface_methods,
    is_capability_interface,
    is_declared_implementor,
    resolve_interfaces,
)
from duckchain.proxy import chain_of, is_proxy, new_proxy
from duckchain.signature import NON_DISPATCHED_DUNDERS, InterfaceMethod, MethodSignature
