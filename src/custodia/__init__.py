"""
Custodia - Minimal custodial ledger.

Anyone may deposit; only the owner may move value out. Every deposit and
withdrawal is an immutable, indexed ledger record.

Usage:
    >>> from custodia import Custodia
    >>>
    >>> custody = Custodia(owner="0xOwner")
    >>> await custody.deposit("0xAlice", 100)
    >>> await custody.withdraw_to("0xOwner", "0xBob", 60)
    >>> record = await custody.transaction(1)
"""

from custodia.client import Custodia
from custodia.core.config import Config
from custodia.core.events import EventType, LedgerEvent
from custodia.core.exceptions import (
    ConfigurationError,
    CustodiaError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRecipientError,
    InvalidSignatureError,
    LockUnavailableError,
    NoBalanceError,
    NotificationError,
    OutOfRangeError,
    StorageError,
    TransferFailedError,
    UnauthorizedError,
    ValidationError,
)
from custodia.core.types import (
    ZERO_ADDRESS,
    AuditReport,
    LedgerTotals,
    TransactionKind,
    TransactionRecord,
)
from custodia.custody import CustodyController, OwnerPolicy
from custodia.host import CustodyHost, LocalHost, TransferResult
from custodia.ledger import CustodyLock, Ledger, UnitOfWork
from custodia.notifications import EventBus, NotificationVerifier, WebhookNotifier

__version__ = "0.1.0"
__all__ = [
    # Main entry point
    "Custodia",
    "CustodyController",
    "OwnerPolicy",
    # Ledger
    "Ledger",
    "UnitOfWork",
    "CustodyLock",
    # Types
    "TransactionKind",
    "TransactionRecord",
    "LedgerTotals",
    "AuditReport",
    "ZERO_ADDRESS",
    # Events
    "EventType",
    "LedgerEvent",
    "EventBus",
    "WebhookNotifier",
    "NotificationVerifier",
    # Host
    "CustodyHost",
    "LocalHost",
    "TransferResult",
    # Config
    "Config",
    # Exceptions
    "CustodiaError",
    "ConfigurationError",
    "ValidationError",
    "InvalidAmountError",
    "InvalidRecipientError",
    "InvalidSignatureError",
    "UnauthorizedError",
    "InsufficientBalanceError",
    "NoBalanceError",
    "OutOfRangeError",
    "TransferFailedError",
    "LockUnavailableError",
    "NotificationError",
    "StorageError",
]
