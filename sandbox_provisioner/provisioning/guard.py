"""Per-actor serialisation of provisioning runs within one process.

Duplicate deliveries of the same event that reach the same process are run
one after the other, so the later run observes the conflicts left by the
earlier one instead of racing it. Deliveries handled by different processes
still rely on the remote API rejecting duplicates.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import typing as typ

GuardKey = tuple[str, str]


@dataclasses.dataclass(slots=True)
class _Entry:
    lock: asyncio.Lock = dataclasses.field(default_factory=asyncio.Lock)
    users: int = 0


class ProvisioningGuard:
    """Keyed asyncio locks over ``(workspace_id, actor_id)``.

    Entries are removed once no task holds or waits on them, so the table
    only contains keys with runs in flight.

    Examples
    --------
    >>> import asyncio
    >>> guard = ProvisioningGuard()
    >>> async def run() -> int:
    ...     async with guard.hold("ws-1", "user-1"):
    ...         return guard.active_keys
    >>> asyncio.run(run())
    1

    """

    def __init__(self) -> None:
        """Initialise an empty lock table."""
        self._entries: dict[GuardKey, _Entry] = {}

    @property
    def active_keys(self) -> int:
        """Return the number of keys with a run in flight or waiting."""
        return len(self._entries)

    @contextlib.asynccontextmanager
    async def hold(self, workspace_id: str, actor_id: str) -> typ.AsyncIterator[None]:
        """Hold the lock for one actor in one workspace."""
        key = (workspace_id, actor_id)
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]


__all__ = ["ProvisioningGuard"]
