"""
Type definitions for Custodia.

This module contains the enums, data classes and identifier/amount helpers
used throughout the package.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, TypeAlias

from custodia.core.exceptions import InvalidAmountError

# Type alias for flexible amount input
AmountType: TypeAlias = int | str

ZERO_ADDRESS = "0x" + "0" * 40

_HEX_ADDRESS = re.compile(r"^0[xX][0-9a-fA-F]+$")
_DIGITS = re.compile(r"^[0-9]+$")


class TransactionKind(str, Enum):
    """Kinds of ledger records."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"

    @classmethod
    def from_string(cls, value: str) -> TransactionKind:
        value_lower = value.lower()
        for member in cls:
            if member.value == value_lower:
                return member
        raise ValueError(f"Unknown transaction kind: {value}. Supported: {[k.value for k in cls]}")


def normalize_address(address: str) -> str:
    """
    Normalize an account identifier for comparison.

    Hex addresses are compared case-insensitively, everything else verbatim
    after trimming whitespace.
    """
    address = address.strip()
    if _HEX_ADDRESS.match(address):
        return address.lower()
    return address


def is_null_address(address: str | None) -> bool:
    """True for None, the empty string, or an all-zero hex address."""
    if address is None:
        return True
    address = address.strip()
    if not address:
        return True
    if _HEX_ADDRESS.match(address):
        return int(address, 16) == 0
    return False


def parse_amount(amount: Any) -> int:
    """
    Convert an amount to an integer number of smallest currency units.

    Accepts ints and base-10 digit strings. Booleans, floats, fractional
    decimals and negative values are rejected.

    Raises:
        InvalidAmountError: If the amount cannot be represented exactly
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid amount: {amount!r}", amount=amount)
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, Decimal) and amount == amount.to_integral_value():
        value = int(amount)
    elif isinstance(amount, str) and _DIGITS.match(amount.strip()):
        value = int(amount.strip())
    else:
        raise InvalidAmountError(f"Invalid amount: {amount!r}", amount=amount)

    if value < 0:
        raise InvalidAmountError(f"Amount must not be negative: {value}", amount=amount)
    return value


@dataclass(frozen=True)
class TransactionRecord:
    """
    A single entry in the custody ledger.

    Attributes:
        index: Permanent 0-based position in the ledger
        participant: Depositor for deposits, recipient for withdrawals
        amount: Value in the smallest currency unit
        timestamp: Host timestamp taken when the record was created
        kind: Deposit or withdrawal
    """

    index: int
    participant: str
    amount: int
    timestamp: int
    kind: TransactionKind

    @property
    def is_deposit(self) -> bool:
        return self.kind == TransactionKind.DEPOSIT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "index": self.index,
            "participant": self.participant,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionRecord:
        """Create TransactionRecord from dictionary."""
        return cls(
            index=int(data["index"]),
            participant=data["participant"],
            amount=int(data["amount"]),
            timestamp=int(data["timestamp"]),
            kind=TransactionKind(data["kind"]),
        )


@dataclass(frozen=True)
class LedgerTotals:
    """Aggregated deposit and withdrawal amounts over the whole ledger."""

    deposited: int = 0
    withdrawn: int = 0
    count: int = 0

    @property
    def net(self) -> int:
        return self.deposited - self.withdrawn


@dataclass(frozen=True)
class AuditReport:
    """Result of comparing the ledger against the custodied balance."""

    balance: int
    totals: LedgerTotals

    @property
    def consistent(self) -> bool:
        return self.balance == self.totals.net

    @property
    def discrepancy(self) -> int:
        return self.balance - self.totals.net
