"""
Custody hosts - timestamps and outbound value transfer.
"""

from custodia.host.base import CustodyHost, TransferResult
from custodia.host.local import LocalHost

__all__ = [
    "CustodyHost",
    "TransferResult",
    "LocalHost",
]
