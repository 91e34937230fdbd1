"""
signature.py

duckchain MethodSignature Primitive

A MethodSignature identifies a callable by what a caller can observe when
invoking it: its name and the ordered types of its parameters.

Design Invariants:
- Immutable after creation
- Equality ignores return type, defaults, and the declaring class
- The implicit self/cls parameter is never part of a signature
- Unannotated parameters are identified as typing.Any
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple

from duckchain.errors import ChainImmutabilityError

# =============================================================================
# Schema Constants
# =============================================================================

# Class machinery that is never indexed on a link nor forwarded by a proxy.
NON_DISPATCHED_DUNDERS = frozenset({
    "__init__",
    "__new__",
    "__del__",
    "__init_subclass__",
    "__subclasshook__",
    "__class_getitem__",
    "__getattr__",
    "__getattribute__",
    "__setattr__",
    "__delattr__",
    "__dir__",
    "__reduce__",
    "__reduce_ex__",
    "__getstate__",
    "__setstate__",
    "__copy__",
    "__deepcopy__",
    "__set_name__",
    "__get__",
    "__set__",
    "__delete__",
    "__instancecheck__",
    "__subclasscheck__",
    "__mro_entries__",
})

_VAR_POSITIONAL_MARK = "*"
_VAR_KEYWORD_MARK = "**"


# =============================================================================
# Helper Functions
# =============================================================================

def is_public_name(name: str) -> bool:
    """Return True if a method with this name may be dispatched to."""
    if name in NON_DISPATCHED_DUNDERS:
        return False
    if name.startswith("__") and name.endswith("__"):
        return True
    return not name.startswith("_")


def _type_identifier(annotation: Any) -> Any:
    if annotation is inspect.Parameter.empty:
        return Any
    try:
        hash(annotation)
    except TypeError:
        return repr(annotation)
    return annotation


def _introspect(func: Callable) -> Optional[inspect.Signature]:
    """Signature of func with annotations resolved where possible, or None."""
    try:
        return inspect.signature(func, eval_str=True)
    except (NameError, AttributeError, SyntaxError):
        # Unresolvable forward reference; keep the raw annotation strings
        pass
    except (TypeError, ValueError):
        return None
    try:
        return inspect.signature(func)
    except (TypeError, ValueError):
        return None


# =============================================================================
# MethodSignature
# =============================================================================

class MethodSignature:
    """
    The (name, parameter types) key used to match methods across objects.

    Attributes:
        name: Method name
        parameter_types: Ordered tuple of parameter type identifiers.
            Variadic parameters appear as ("*", T) and ("**", T).
    """

    __slots__ = ('_name', '_parameter_types', '_frozen')

    def __init__(self, name: str, parameter_types: Tuple[Any, ...] = ()):
        if not isinstance(name, str) or not name:
            raise TypeError(f"name must be a non-empty string, got {name!r}")

        object.__setattr__(self, '_name', name)
        object.__setattr__(self, '_parameter_types', tuple(parameter_types))
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise ChainImmutabilityError(f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, '_frozen', False):
            raise ChainImmutabilityError(f"delete attribute '{name}'")
        object.__delattr__(self, name)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_signature(
        cls,
        name: str,
        signature: inspect.Signature,
        *,
        skip_first: bool = False,
    ) -> "MethodSignature":
        """Build from an inspect.Signature, optionally dropping self/cls."""
        params = list(signature.parameters.values())
        if skip_first and params and params[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            params = params[1:]

        types = []
        for param in params:
            type_id = _type_identifier(param.annotation)
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                type_id = (_VAR_POSITIONAL_MARK, type_id)
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                type_id = (_VAR_KEYWORD_MARK, type_id)
            types.append(type_id)
        return cls(name, tuple(types))

    @classmethod
    def of_bound(cls, name: str, handle: Callable) -> Optional["MethodSignature"]:
        """
        Signature of a method already bound to its object.

        Returns None when the callable cannot be introspected (some
        builtins carry no signature metadata).
        """
        sig = _introspect(handle)
        if sig is None:
            return None
        return cls.from_signature(name, sig)

    @classmethod
    def of_declared(cls, name: str, attribute: Any) -> Optional["MethodSignature"]:
        """Signature of a method as found in a class __dict__."""
        if isinstance(attribute, staticmethod):
            sig = _introspect(attribute.__func__)
            skip_first = False
        elif isinstance(attribute, classmethod):
            sig = _introspect(attribute.__func__)
            skip_first = True
        else:
            sig = _introspect(attribute)
            skip_first = True
        if sig is None:
            return None
        return cls.from_signature(name, sig, skip_first=skip_first)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def parameter_types(self) -> Tuple[Any, ...]:
        return self._parameter_types

    # -------------------------------------------------------------------------
    # Comparison Methods
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MethodSignature):
            return NotImplemented
        return (
            self._name == other._name
            and self._parameter_types == other._parameter_types
        )

    def __hash__(self) -> int:
        return hash((self._name, self._parameter_types))

    # -------------------------------------------------------------------------
    # String Representations
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"MethodSignature({self._name!r}, {self._parameter_types!r})"

    def __str__(self) -> str:
        return f"{self._name}({', '.join(_format_type(t) for t in self._parameter_types)})"


def _format_type(type_id: Any) -> str:
    if isinstance(type_id, tuple) and len(type_id) == 2 and type_id[0] in (
        _VAR_POSITIONAL_MARK,
        _VAR_KEYWORD_MARK,
    ):
        return f"{type_id[0]}{_format_type(type_id[1])}"
    if type_id is Any:
        return "Any"
    if isinstance(type_id, type):
        return type_id.__qualname__
    return str(type_id)


# =============================================================================
# InterfaceMethod
# =============================================================================

@dataclass(frozen=True)
class InterfaceMethod:
    """
    A method as declared by a capability interface.

    This is what a proxy hands to DelegationChain.invoke: the interface
    that declared the method, its name, and the raw declaration (function,
    staticmethod or classmethod object) found in the interface __dict__.
    """
    interface: type
    name: str
    declaration: Any = field(compare=False)
    signature: MethodSignature = field(init=False, compare=False)

    def __post_init__(self):
        sig = MethodSignature.of_declared(self.name, self.declaration)
        if sig is None:
            sig = MethodSignature(self.name, ())
        object.__setattr__(self, 'signature', sig)

    @classmethod
    def of(cls, interface: type, name: str) -> "InterfaceMethod":
        """Look up the declaration of name on interface (or what it extends)."""
        for klass in interface.__mro__:
            if name in vars(klass):
                return cls(interface=klass, name=name, declaration=vars(klass)[name])
        raise AttributeError(f"{interface.__qualname__} declares no method {name!r}")

    @property
    def doc(self) -> Optional[str]:
        func = getattr(self.declaration, "__func__", self.declaration)
        return getattr(func, "__doc__", None)

    def __str__(self) -> str:
        return f"{self.interface.__qualname__}.{self.signature}"
