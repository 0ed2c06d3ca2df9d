"""
Ledger module - Append-only transaction log for Custodia.

Provides the ledger store, the unit of work that makes calls
all-or-nothing, and the custody lock that serializes them.
"""

from custodia.ledger.ledger import Ledger
from custodia.ledger.lock import CustodyLock
from custodia.ledger.unit_of_work import UnitOfWork

__all__ = [
    "Ledger",
    "UnitOfWork",
    "CustodyLock",
]
