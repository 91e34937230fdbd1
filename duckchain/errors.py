"""
errors.py

Error taxonomy for duckchain.

Design principles:
- Resolution failures stay silent until every link has been tried
- Exactly one error is raised by dispatch itself: UnsupportedCapabilityError
- Failures raised by a backing object are never wrapped
- Every error carries a stable error code
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from duckchain.signature import InterfaceMethod, MethodSignature


class DelegationError(Exception):
    """
    Base class for all duckchain errors.

    Each error carries a short message and a stable error code so callers
    can match on ``error_code`` instead of parsing text.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "D000",
    ):
        self.message = message
        self.error_code = error_code
        super().__init__(self.format())

    def format(self) -> str:
        """Format as a single-line error message."""
        return f"[{self.error_code}] {self.message}"


# === Dispatch Errors (D001) ===

class UnsupportedCapabilityError(DelegationError, NotImplementedError):
    """
    Raised when no link in a chain can answer a requested method.

    Attributes:
        interface: The interface that declared the requested method
        method_name: Name of the requested method
        signature: The (name, parameter types) key that was searched for
    """

    def __init__(self, method: "InterfaceMethod"):
        self.method = method
        self.interface = method.interface
        self.method_name = method.name
        self.signature: "MethodSignature" = method.signature
        super().__init__(
            f"No link in the delegation chain can answer "
            f"{_qualified_name(method.interface)}.{self.signature}",
            error_code="D001",
        )


# === Construction Errors (D002-D004) ===

class InvalidInterfaceError(DelegationError, TypeError):
    """Raised when something that is not a class is declared as an interface."""

    def __init__(self, value: Any, reason: Optional[str] = None):
        self.value = value
        super().__init__(
            reason or f"Expected an interface class, got {type(value).__name__}: {value!r}",
            error_code="D002",
        )


class InvalidBackingObjectError(DelegationError, ValueError):
    """Raised when a backing object cannot be added to a chain."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid backing object: {reason}", error_code="D003")


class ProxySynthesisError(DelegationError, TypeError):
    """Raised when the interfaces of a chain cannot be combined into one class."""

    def __init__(self, interfaces: Any, cause: BaseException):
        self.interfaces = tuple(interfaces)
        self.cause = cause
        names = ", ".join(_qualified_name(i) for i in self.interfaces) or "<none>"
        super().__init__(
            f"Cannot synthesize a proxy for interfaces ({names}): {cause}",
            error_code="D004",
        )


class ChainImmutabilityError(Exception):
    """Raised when attempting to mutate an immutable chain object."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: object is immutable after creation"
        )


# === Utility Functions ===

def _qualified_name(cls: Any) -> str:
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", None) or repr(cls)
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"


def format_error(error: BaseException) -> str:
    """
    Format an exception for display.

    DelegationError instances keep their code; anything else is a failure
    raised by a backing object and is shown with its own type name.
    """
    if isinstance(error, DelegationError):
        return f"Error {error.error_code}: {error.message}"
    return f"{type(error).__name__}: {error}"
