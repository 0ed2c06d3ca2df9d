"""
Append-only custody ledger.

Records every deposit and withdrawal under a dense integer index, using the
unified StorageBackend for persistence.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from custodia.core.events import LedgerEvent
from custodia.core.exceptions import OutOfRangeError
from custodia.core.types import LedgerTotals, TransactionKind, TransactionRecord
from custodia.ledger.unit_of_work import UnitOfWork

if TYPE_CHECKING:
    from custodia.host.base import CustodyHost
    from custodia.notifications.bus import EventBus
    from custodia.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class Ledger:
    """
    Transaction ledger using StorageBackend.

    Records are keyed by their index. There is no update or delete path:
    once committed, a record stays exactly where it was written.
    """

    COLLECTION = "ledger_records"

    def __init__(
        self,
        storage: StorageBackend,
        host: CustodyHost,
        bus: EventBus | None = None,
    ) -> None:
        """
        Initialize ledger.

        Args:
            storage: The unified storage backend (InMemory, Redis, etc.)
            host: Host supplying record timestamps
            bus: Optional bus receiving Deposited/Withdrawn notifications
        """
        self._storage = storage
        self._host = host
        self._bus = bus

    def unit_of_work(self) -> UnitOfWork:
        """Open a unit of work bound to this ledger's storage and bus."""
        return UnitOfWork(self._storage, self._bus)

    async def append(
        self,
        participant: str,
        amount: int,
        kind: TransactionKind,
        unit: UnitOfWork | None = None,
    ) -> int:
        """
        Append a record and return its index.

        Inputs are not validated here; callers check amounts and identities.

        Args:
            participant: Depositor or withdrawal recipient
            amount: Value in the smallest currency unit
            kind: Deposit or withdrawal
            unit: Unit of work to stage into. Without one, the record is
                committed immediately.

        Returns:
            Index assigned to the record
        """
        if unit is None:
            async with self.unit_of_work() as own_unit:
                return await self.append(participant, amount, kind, unit=own_unit)

        index = await self.count() + unit.pending(self.COLLECTION)
        record = TransactionRecord(
            index=index,
            participant=participant,
            amount=amount,
            timestamp=self._host.now(),
            kind=kind,
        )
        unit.stage_save(self.COLLECTION, str(index), record.to_dict())
        unit.stage_event(LedgerEvent.from_record(record))
        logger.debug(f"Staged {kind.value} #{index}: {amount} ({participant})")
        return index

    async def count(self) -> int:
        """Number of committed records."""
        return await self._storage.count(self.COLLECTION)

    async def get(self, index: int) -> TransactionRecord:
        """
        Get record by index.

        Raises:
            OutOfRangeError: If index is negative or not below count()
        """
        count = await self.count()
        if index < 0 or index >= count:
            raise OutOfRangeError(
                f"Ledger index {index} out of range (count: {count})",
                index=index,
                count=count,
            )
        data = await self._storage.get(self.COLLECTION, str(index))
        return TransactionRecord.from_dict(data)

    async def list(self, start: int = 0, limit: int | None = None) -> list[TransactionRecord]:
        """
        Records in index order.

        Args:
            start: First index to return
            limit: Maximum records to return

        Returns:
            List of records, empty when start is past the end
        """
        count = await self.count()
        start = max(start, 0)
        stop = count if limit is None else min(count, start + max(limit, 0))

        records = []
        for index in range(start, stop):
            data = await self._storage.get(self.COLLECTION, str(index))
            records.append(TransactionRecord.from_dict(data))
        return records

    async def totals(self) -> LedgerTotals:
        """Sum deposits and withdrawals across the whole ledger."""
        deposited = 0
        withdrawn = 0
        records = await self.list()
        for record in records:
            if record.kind == TransactionKind.DEPOSIT:
                deposited += record.amount
            else:
                withdrawn += record.amount
        return LedgerTotals(deposited=deposited, withdrawn=withdrawn, count=len(records))
