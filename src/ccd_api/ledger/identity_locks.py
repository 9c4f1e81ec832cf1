"""Per-identity lock registry for ledger operations."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from typing import Dict
from typing import Tuple


class IdentityLockRegistry:
    """
    Keyed asyncio locks, one per (id_type, id_number).

    Sync and query for the same identity run one at a time within the process.
    Locks for different identities never block each other. An entry lives only
    while some task holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._users: Dict[Tuple[str, str], int] = {}
        self._guard = asyncio.Lock()

    async def _checkout(self, key: Tuple[str, str]) -> asyncio.Lock:
        async with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    async def _release(self, key: Tuple[str, str]) -> None:
        async with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def lock(self, id_type: str, id_number: str) -> AsyncIterator[None]:
        """Hold the lock of one identity for the duration of the block."""
        key = (str(id_type).upper(), str(id_number).strip())
        lock = await self._checkout(key)
        try:
            async with lock:
                yield
        finally:
            await asyncio.shield(self._release(key))

    def __len__(self) -> int:
        return len(self._locks)
