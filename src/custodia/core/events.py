"""
Core Event Types for Custodia.

One event is published for every committed ledger append.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from custodia.core.types import TransactionKind, TransactionRecord


class EventType(str, Enum):
    """Types of ledger notifications."""

    DEPOSITED = "Deposited"
    WITHDRAWN = "Withdrawn"

    @classmethod
    def for_kind(cls, kind: TransactionKind) -> EventType:
        if kind == TransactionKind.DEPOSIT:
            return cls.DEPOSITED
        return cls.WITHDRAWN


@dataclass(frozen=True)
class LedgerEvent:
    """
    Notification emitted when a record is appended to the ledger.

    Consumed by external auditors; nothing inside the package reacts to it.
    """

    type: EventType
    participant: str
    amount: int
    index: int
    timestamp: int

    @classmethod
    def from_record(cls, record: TransactionRecord) -> LedgerEvent:
        return cls(
            type=EventType.for_kind(record.kind),
            participant=record.participant,
            amount=record.amount,
            index=record.index,
            timestamp=record.timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "participant": self.participant,
            "amount": str(self.amount),
            "index": self.index,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEvent:
        return cls(
            type=EventType(data["type"]),
            participant=data["participant"],
            amount=int(data["amount"]),
            index=int(data["index"]),
            timestamp=int(data["timestamp"]),
        )
