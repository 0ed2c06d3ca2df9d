"""
Unit tests for Ledger module.

Tests TransactionRecord serialization and the Ledger store.
"""

import pytest

from custodia.core.events import EventType
from custodia.core.exceptions import OutOfRangeError
from custodia.core.types import TransactionKind, TransactionRecord
from custodia.ledger import Ledger
from tests.conftest import ALICE, BOB, OWNER


class TestTransactionRecord:
    """Tests for TransactionRecord dataclass."""

    def test_to_dict(self):
        record = TransactionRecord(
            index=3,
            participant=ALICE,
            amount=250,
            timestamp=1_700_000_000,
            kind=TransactionKind.DEPOSIT,
        )
        d = record.to_dict()

        assert d["index"] == 3
        assert d["participant"] == ALICE
        assert d["amount"] == "250"
        assert d["kind"] == "deposit"

    def test_from_dict(self):
        record = TransactionRecord.from_dict(
            {
                "index": 1,
                "participant": BOB,
                "amount": "40",
                "timestamp": 5,
                "kind": "withdrawal",
            }
        )
        assert record.amount == 40
        assert record.kind == TransactionKind.WITHDRAWAL
        assert not record.is_deposit

    def test_record_is_immutable(self):
        record = TransactionRecord(0, ALICE, 1, 0, TransactionKind.DEPOSIT)
        with pytest.raises(AttributeError):
            record.amount = 2  # type: ignore


class TestLedger:
    """Tests for Ledger implementation."""

    @pytest.mark.asyncio
    async def test_empty_ledger(self, ledger):
        assert await ledger.count() == 0
        assert await ledger.list() == []

    @pytest.mark.asyncio
    async def test_append_assigns_dense_indices(self, ledger):
        indices = [
            await ledger.append(ALICE, 10, TransactionKind.DEPOSIT),
            await ledger.append(BOB, 20, TransactionKind.DEPOSIT),
            await ledger.append(OWNER, 5, TransactionKind.WITHDRAWAL),
        ]

        assert indices == [0, 1, 2]
        assert await ledger.count() == 3

    @pytest.mark.asyncio
    async def test_get_entry(self, ledger):
        await ledger.append(ALICE, 25, TransactionKind.DEPOSIT)

        record = await ledger.get(0)
        assert record.participant == ALICE
        assert record.amount == 25
        assert record.timestamp == 1_700_000_000
        assert record.kind == TransactionKind.DEPOSIT

    @pytest.mark.asyncio
    async def test_get_on_empty_ledger_is_out_of_range(self, ledger):
        with pytest.raises(OutOfRangeError) as exc_info:
            await ledger.get(0)
        assert exc_info.value.index == 0
        assert exc_info.value.count == 0

    @pytest.mark.asyncio
    async def test_get_past_end_is_out_of_range(self, ledger):
        await ledger.append(ALICE, 1, TransactionKind.DEPOSIT)
        with pytest.raises(OutOfRangeError):
            await ledger.get(1)

    @pytest.mark.asyncio
    async def test_negative_index_is_out_of_range(self, ledger):
        await ledger.append(ALICE, 1, TransactionKind.DEPOSIT)
        with pytest.raises(OutOfRangeError):
            await ledger.get(-1)

    @pytest.mark.asyncio
    async def test_append_emits_notification(self, ledger, received):
        await ledger.append(ALICE, 10, TransactionKind.DEPOSIT)
        await ledger.append(BOB, 4, TransactionKind.WITHDRAWAL)

        assert [(e.type, e.participant, e.amount, e.index) for e in received] == [
            (EventType.DEPOSITED, ALICE, 10, 0),
            (EventType.WITHDRAWN, BOB, 4, 1),
        ]

    @pytest.mark.asyncio
    async def test_append_in_unit_counts_staged_records(self, ledger):
        await ledger.append(ALICE, 1, TransactionKind.DEPOSIT)

        async with ledger.unit_of_work() as unit:
            first = await ledger.append(ALICE, 2, TransactionKind.DEPOSIT, unit=unit)
            second = await ledger.append(BOB, 3, TransactionKind.DEPOSIT, unit=unit)
            # Nothing is visible until the unit commits
            assert await ledger.count() == 1

        assert (first, second) == (1, 2)
        assert await ledger.count() == 3

    @pytest.mark.asyncio
    async def test_aborted_unit_leaves_no_record(self, ledger, received):
        with pytest.raises(RuntimeError):
            async with ledger.unit_of_work() as unit:
                await ledger.append(ALICE, 2, TransactionKind.DEPOSIT, unit=unit)
                raise RuntimeError("abort")

        assert await ledger.count() == 0
        assert received == []

    @pytest.mark.asyncio
    async def test_list_window(self, ledger):
        for i in range(5):
            await ledger.append(ALICE, i + 1, TransactionKind.DEPOSIT)

        window = await ledger.list(start=1, limit=2)
        assert [r.index for r in window] == [1, 2]

        assert [r.index for r in await ledger.list(start=3)] == [3, 4]
        assert await ledger.list(start=10) == []

    @pytest.mark.asyncio
    async def test_totals(self, ledger):
        await ledger.append(ALICE, 100, TransactionKind.DEPOSIT)
        await ledger.append(BOB, 50, TransactionKind.DEPOSIT)
        await ledger.append(OWNER, 30, TransactionKind.WITHDRAWAL)

        totals = await ledger.totals()
        assert totals.deposited == 150
        assert totals.withdrawn == 30
        assert totals.net == 120
        assert totals.count == 3

    @pytest.mark.asyncio
    async def test_timestamps_follow_host_clock(self, storage, bus):
        from custodia.host import LocalHost

        readings = iter([100, 90, 120])
        ledger = Ledger(storage, LocalHost(clock=lambda: next(readings)), bus)

        for _ in range(3):
            await ledger.append(ALICE, 1, TransactionKind.DEPOSIT)

        assert [r.timestamp for r in await ledger.list()] == [100, 100, 120]
