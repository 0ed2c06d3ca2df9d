"""
Unit of work for custody calls.

Stages every effect of a call (ledger records, balance movements and the
notifications describing them) and applies them only if the call
completes. Leaving the scope with an exception discards everything.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from custodia.core.events import LedgerEvent
from custodia.core.exceptions import StorageError

if TYPE_CHECKING:
    from custodia.notifications.bus import EventBus
    from custodia.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    All-or-nothing staging area over a StorageBackend.

    Usage:
        >>> async with UnitOfWork(storage, bus) as uow:
        ...     uow.stage_save("ledger_records", "0", {...})
        ...     uow.stage_add("custody", "balance", 100)
        ...     uow.stage_event(event)

    Records are written before counters; events are published only after
    both have been written.
    """

    def __init__(self, storage: StorageBackend, bus: EventBus | None = None) -> None:
        self._storage = storage
        self._bus = bus
        self._saves: list[tuple[str, str, dict[str, Any]]] = []
        self._adds: dict[tuple[str, str], int] = {}
        self._events: list[LedgerEvent] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Unit of work is already closed")

    def stage_save(self, collection: str, key: str, data: dict[str, Any]) -> None:
        self._check_open()
        self._saves.append((collection, key, data))

    def stage_add(self, collection: str, key: str, amount: int) -> None:
        self._check_open()
        self._adds[(collection, key)] = self._adds.get((collection, key), 0) + amount

    def stage_event(self, event: LedgerEvent) -> None:
        self._check_open()
        self._events.append(event)

    def pending(self, collection: str) -> int:
        """Number of records staged for collection."""
        return sum(1 for coll, _, _ in self._saves if coll == collection)

    def pending_delta(self, collection: str, key: str) -> int:
        return self._adds.get((collection, key), 0)

    async def commit(self) -> None:
        """
        Apply staged writes, then publish staged events.

        Raises:
            StorageError: If the backend fails while applying writes
        """
        self._check_open()
        self._closed = True

        try:
            for collection, key, data in self._saves:
                await self._storage.save(collection, key, data)
            for (collection, key), amount in self._adds.items():
                if amount:
                    await self._storage.atomic_add(collection, key, amount)
        except Exception as e:
            logger.error(f"Commit failed after {len(self._saves)} staged writes: {e}")
            raise StorageError(f"Failed to commit custody state: {e}") from e

        if self._bus is not None and self._events:
            await self._bus.publish(self._events)

    def rollback(self) -> None:
        """Discard everything staged."""
        if self._closed:
            return
        self._closed = True
        if self._saves or self._adds or self._events:
            logger.debug(
                f"Discarded {len(self._saves)} staged records and {len(self._events)} events"
            )
        self._saves.clear()
        self._adds.clear()
        self._events.clear()

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None:
            await self.commit()
        else:
            self.rollback()
        return False
