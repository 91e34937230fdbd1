"""
test_proxy.py

Tests for proxy synthesis.

Tests cover:
- isinstance() against every advertised interface
- Forwarding of positional, keyword and dunder calls
- Class caching and most-derived bases
- chain_of / is_proxy
- ProxySynthesisError for unusable interface sets
"""

import abc
from collections.abc import Sized
from typing import Protocol, runtime_checkable

import pytest

from duckchain import (
    DelegationChain,
    ProxySynthesisError,
    UnsupportedCapabilityError,
    capability_interface,
    chain_of,
    is_proxy,
    new_proxy,
)
from duckchain.proxy import _class_cache, clear_cache, proxy_class


@runtime_checkable
class Greeter(Protocol):
    def greet(self, name: str) -> str:
        """Return a greeting for name."""
        ...


@runtime_checkable
class FormalGreeter(Greeter, Protocol):
    def bow(self) -> str: ...


class Counter(abc.ABC):
    @abc.abstractmethod
    def increment(self, by: int = 1) -> int: ...


class Friendly:
    def greet(self, name: str) -> str:
        return f"hi {name}"

    def bow(self) -> str:
        return "*bows*"


class Tally:
    def __init__(self):
        self.total = 0

    def increment(self, by: int = 1) -> int:
        self.total += by
        return self.total


# =============================================================================
# Forwarding
# =============================================================================

class TestForwarding:
    """Tests for calls routed through a proxy."""

    def test_isinstance_of_interface(self):
        proxy = new_proxy({Greeter}, DelegationChain(Friendly()))
        assert isinstance(proxy, Greeter)

    def test_positional_and_keyword(self):
        proxy = new_proxy({Greeter}, DelegationChain(Friendly()))
        assert proxy.greet("bob") == "hi bob"
        assert proxy.greet(name="ann") == "hi ann"

    def test_multiple_interfaces(self):
        tally = Tally()
        proxy = new_proxy({Greeter, Counter}, DelegationChain(Friendly(), tally))
        assert isinstance(proxy, Greeter)
        assert isinstance(proxy, Counter)
        assert proxy.increment() == 1
        assert proxy.increment(by=4) == 5
        assert tally.total == 5

    def test_dunder_methods(self):
        class Box:
            def __len__(self) -> int:
                return 3

        proxy = new_proxy({Sized}, DelegationChain(Box()))
        assert len(proxy) == 3

    def test_unsupported_through_proxy(self):
        proxy = new_proxy({Greeter}, DelegationChain())
        with pytest.raises(UnsupportedCapabilityError):
            proxy.greet("bob")

    def test_forwarder_metadata(self):
        cls = proxy_class({Greeter})
        assert cls.greet.__name__ == "greet"
        assert cls.greet.__doc__ == "Return a greeting for name."

    def test_repr(self):
        proxy = new_proxy({Greeter}, DelegationChain(Friendly()))
        assert repr(proxy) == "<GreeterProxy links=1>"


# =============================================================================
# Class Synthesis
# =============================================================================

class TestProxyClass:
    """Tests for proxy class creation and caching."""

    def test_cached(self):
        assert proxy_class({Greeter}) is proxy_class({Greeter})

    def test_name_is_part_of_cache_key(self):
        named = proxy_class({Greeter}, name="Welcomer")
        assert named.__name__ == "Welcomer"
        assert named is not proxy_class({Greeter})

    def test_clear_cache(self):
        before = proxy_class({Counter})
        clear_cache()
        assert proxy_class({Counter}) is not before

    def test_clear_cache_releases_named_classes(self):
        """Each generated name is cached until the cache is cleared."""
        clear_cache()
        proxies = [
            new_proxy({Greeter}, DelegationChain(Friendly()), name=f"Greeter{i}")
            for i in range(20)
        ]
        assert len(_class_cache) == 20

        clear_cache()
        assert len(_class_cache) == 0
        assert proxies[7].greet("bob") == "hi bob"
        assert type(proxies[7]).__name__ == "Greeter7"

    def test_extended_interfaces_collapsed(self):
        """An interface already extended by another member is not a separate base."""
        cls = proxy_class({Greeter, FormalGreeter})
        assert cls.__bases__ == (FormalGreeter,)
        proxy = cls(DelegationChain(Friendly()))
        assert isinstance(proxy, Greeter)
        assert proxy.bow() == "*bows*"

    def test_no_interfaces(self):
        proxy = new_proxy(frozenset(), DelegationChain(Friendly()))
        assert type(proxy).__bases__ == (object,)
        assert not hasattr(proxy, "greet")

    def test_abstract_property_rejected(self):
        class HasName(abc.ABC):
            @property
            @abc.abstractmethod
            def name(self) -> str: ...

        with pytest.raises(ProxySynthesisError) as excinfo:
            new_proxy({HasName}, DelegationChain())
        assert excinfo.value.error_code == "D004"

    def test_metaclass_conflict_rejected(self):
        class MetaA(type):
            pass

        class MetaB(type):
            pass

        @capability_interface
        class A(metaclass=MetaA):
            def a(self) -> int: ...

        @capability_interface
        class B(metaclass=MetaB):
            def b(self) -> int: ...

        with pytest.raises(ProxySynthesisError):
            new_proxy({A, B}, DelegationChain())


# =============================================================================
# Introspection
# =============================================================================

class TestIntrospection:
    """Tests for is_proxy and chain_of."""

    def test_chain_of(self):
        chain = DelegationChain(Friendly())
        proxy = new_proxy({Greeter}, chain)
        assert is_proxy(proxy)
        assert chain_of(proxy) is chain

    def test_not_a_proxy(self):
        assert not is_proxy(Friendly())
        with pytest.raises(TypeError):
            chain_of(Friendly())

    def test_new_proxy_instance(self):
        chain = DelegationChain(Tally())
        proxy = chain.new_proxy_instance()
        # Tally matches Counter by shape only, so Counter is not advertised
        assert not isinstance(proxy, Counter)
        assert chain_of(proxy) is chain
