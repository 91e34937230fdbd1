"""
audited_map.py

Record every write to a key-value store without hand-writing forwarding
methods for the rest of its API.

Use case: find out who changed a shared settings store, and introduce a
Flushable capability that the underlying store never implemented.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from duckchain import DynamicDelegator

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """A minimal string-keyed store."""

    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any) -> Optional[Any]: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


@runtime_checkable
class Flushable(Protocol):
    def flush(self) -> int: ...


class DictStore(KeyValueStore):
    """In-memory store; stands in for a store you cannot modify."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def put(self, key: str, value: Any) -> Optional[Any]:
        previous = self._data.get(key)
        self._data[key] = value
        return previous

    def remove(self, key: str) -> None:
        del self._data[key]

    def keys(self) -> List[str]:
        return sorted(self._data)


class AuditedStore(DynamicDelegator):
    """
    Overrides put() to keep an audit trail, and adds flush().

    Parameter annotations match KeyValueStore.put exactly, so this method
    wins over the wrapped store's own put().
    """

    def __init__(self, wrapped: KeyValueStore, who: str):
        super().__init__(wrapped)
        self.who = who
        self.pending: List[Tuple[str, str, Any]] = []

    def put(self, key: str, value: Any) -> Optional[Any]:
        logger.info("%s set %r", self.who, key)
        self.pending.append((self.who, key, value))
        return self.wrapped.put(key, value)

    def flush(self) -> int:
        """Drop the audit trail, returning how many writes it held."""
        count = len(self.pending)
        self.pending.clear()
        return count

    def get_additional_interfaces(self) -> Tuple[type, ...]:
        return (Flushable,)


def audited(store: KeyValueStore, who: str) -> KeyValueStore:
    """Wrap store so every put() is attributed to who."""
    return AuditedStore(store, who).get_proxy()
