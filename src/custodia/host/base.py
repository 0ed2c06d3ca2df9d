"""
Base host interface.

The host is the runtime the custody controller is embedded in. It supplies
timestamps and moves value out of custody; everything else stays inside
the controller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class TransferResult:
    """Result of an outbound value transfer."""

    success: bool
    tx_hash: str | None = None
    error: str | None = None


class CustodyHost(ABC):
    """
    Abstract base class for custody hosts.

    Implementations must return non-decreasing timestamps from now() and
    must report transfer failure through TransferResult rather than by
    moving part of the value.
    """

    @abstractmethod
    def now(self) -> int:
        """Current host timestamp in seconds, never lower than a previous reading."""
        ...

    @abstractmethod
    async def transfer(self, recipient: str, amount: int) -> TransferResult:
        """
        Move value out of custody.

        Args:
            recipient: Destination account identifier
            amount: Value in the smallest currency unit

        Returns:
            TransferResult describing the outcome
        """
        ...
