"""
Custody Lock.

Serializes mutating custody calls so that "append record" and "transfer
value" of one call are never interleaved with another call's.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from custodia.core.exceptions import LockUnavailableError

if TYPE_CHECKING:
    from custodia.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class CustodyLock:
    """
    Global custody mutex.

    Combines an in-process asyncio.Lock with a lease in the storage backend,
    so processes sharing a Redis backend are serialized as well.

    The lease lasts ttl seconds and is not renewed. Callers check it with
    ensure_held() before an irreversible step; a step that itself outlives
    the ttl can still overlap with another process, so ttl must exceed the
    slowest expected host transfer.
    """

    LOCK_KEY = "lock:custody"

    def __init__(
        self,
        storage: StorageBackend,
        ttl: int = 30,
        retry_count: int = 3,
        retry_delay: float = 0.1,
    ) -> None:
        """
        Initialize lock.

        Args:
            storage: Storage backend (Redis/Memory)
            ttl: Lease time-to-live in seconds
            retry_count: Number of retries if the lease is held elsewhere
            retry_delay: Delay between retries
        """
        self._storage = storage
        self._ttl = ttl
        self._retry_count = retry_count
        self._retry_delay = retry_delay
        self._local = asyncio.Lock()

    async def acquire(self) -> str | None:
        """
        Acquire the storage lease.

        Returns:
            lock_token (str) if successful, None if failed
        """
        for i in range(self._retry_count + 1):
            token = await self._storage.acquire_lock(self.LOCK_KEY, self._ttl)
            if token:
                logger.debug(f"Acquired custody lock (token: {token[:8]}...)")
                return token

            if i < self._retry_count:
                logger.debug(f"Custody lock held, retrying in {self._retry_delay}s...")
                await asyncio.sleep(self._retry_delay)

        logger.warning(f"Failed to acquire custody lock after {self._retry_count} retries")
        return None

    async def release(self, lock_token: str) -> bool:
        """
        Release the storage lease.

        Returns:
            True if released, False if expired or held by another token
        """
        result = await self._storage.release_lock(self.LOCK_KEY, lock_token)
        if result:
            logger.debug("Released custody lock")
        else:
            logger.warning("Custody lock lease expired before release")
        return result

    async def ensure_held(self, lock_token: str) -> None:
        """
        Confirm the lease still belongs to lock_token.

        Raises:
            LockUnavailableError: If the lease expired or was taken over
        """
        if not await self._storage.lock_held(self.LOCK_KEY, lock_token):
            logger.warning("Custody lock lease lost before transfer")
            raise LockUnavailableError(
                "Custody lock lease expired", details={"ttl": self._ttl}
            )

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[str]:
        """
        Hold the custody lock for the duration of the block.

        Raises:
            LockUnavailableError: If the storage lease cannot be acquired
        """
        async with self._local:
            token = await self.acquire()
            if token is None:
                raise LockUnavailableError(
                    "Custody lock is held by another process",
                    details={"retries": self._retry_count},
                )
            try:
                yield token
            finally:
                await self.release(token)
