"""
connection_guard.py

Report database connections that are garbage-collected while still open.

The guard overrides nothing on the connection itself; it only adds a
finalizer. The fake connection below is built from scratch: it wraps no
object and implements Connection purely from its own methods.
"""

import logging
import traceback
from typing import List, Protocol, runtime_checkable

from duckchain import DynamicDelegator

logger = logging.getLogger(__name__)


@runtime_checkable
class Cursor(Protocol):
    def execute(self, sql: str) -> bool: ...

    def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    def cursor(self) -> Cursor: ...

    def is_closed(self) -> bool: ...

    def close(self) -> None: ...


# =============================================================================
# Fake driver
# =============================================================================

class FakeCursor(DynamicDelegator):
    """Cursor that accepts any statement. close() is deliberately missing."""

    def __init__(self):
        super().__init__(Cursor)
        self.executed: List[str] = []

    def execute(self, sql: str) -> bool:
        self.executed.append(sql)
        return True


class FakeConnection(DynamicDelegator):
    def __init__(self):
        super().__init__(Connection)
        self.closed = False

    def cursor(self) -> Cursor:
        return FakeCursor().get_proxy()

    def is_closed(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True


def connect() -> Connection:
    return FakeConnection().get_proxy()


# =============================================================================
# Guard
# =============================================================================

class LeakGuard(DynamicDelegator):
    """
    Logs an error with the opening stack if the connection leaks.

    The guard holds its proxy in this_proxy and the proxy holds the guard
    through its chain, so the two form a reference cycle. The report is
    made when the cyclic garbage collector reclaims them, not as soon as
    the last outside reference is dropped.
    """

    def __init__(self, connection: Connection):
        super().__init__(connection)
        self.opened_at = "".join(traceback.format_stack(limit=8)[:-1])

    def __del__(self):
        if not self.wrapped.is_closed():
            logger.error("Connection was never closed. Opened at:\n%s", self.opened_at)


def guarded(connection: Connection) -> Connection:
    return LeakGuard(connection).get_proxy()
