from dataclasses import dataclass
from typing import Any, Callable

# ==================================================
# Connection Management Types
# ==================================================

ConnectionAcquireHook = Callable[[], Any]
ConnectionReleaseHook = Callable[[Any], None]


@dataclass(frozen=True)
class ConnectionSettings:
    """
    How an executor obtains connections when it does not own a fixed one.

    With acquire/release hooks the executor borrows connections from an external
    pool; without them it opens a connection per statement and closes it afterwards.
    """

    connect_timeout_seconds: float | None = None
    acquire_connection: ConnectionAcquireHook | None = None
    release_connection: ConnectionReleaseHook | None = None

    @property
    def uses_pool(self) -> bool:
        return self.acquire_connection is not None
