"""
In-process custody host.

Keeps outbound transfers in memory. Used for development, tests and
embedding the controller in a single process where value leaves custody
through some other bookkeeping system.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from custodia.core.types import normalize_address
from custodia.host.base import CustodyHost, TransferResult

logger = logging.getLogger(__name__)


class LocalHost(CustodyHost):
    """
    Host that records transfers in memory.

    Recipients can be marked as rejecting, which makes every transfer to
    them fail the way a reverting contract recipient would.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        """
        Initialize local host.

        Args:
            clock: Time source in seconds (defaults to time.time)
        """
        self._clock = clock or time.time
        self._last_timestamp = 0
        self._rejecting: set[str] = set()
        self.sent: list[tuple[str, int]] = []

    def now(self) -> int:
        # Wall clock can step backwards; readings must not
        self._last_timestamp = max(self._last_timestamp, int(self._clock()))
        return self._last_timestamp

    def reject_transfers_to(self, recipient: str) -> None:
        """Make every future transfer to recipient fail."""
        self._rejecting.add(normalize_address(recipient))

    def accept_transfers_to(self, recipient: str) -> None:
        self._rejecting.discard(normalize_address(recipient))

    def total_sent(self, recipient: str | None = None) -> int:
        """Sum of successfully transferred value, optionally for one recipient."""
        if recipient is None:
            return sum(amount for _, amount in self.sent)
        recipient = normalize_address(recipient)
        return sum(amount for to, amount in self.sent if to == recipient)

    async def transfer(self, recipient: str, amount: int) -> TransferResult:
        recipient = normalize_address(recipient)
        if recipient in self._rejecting:
            logger.debug(f"Recipient {recipient} rejected transfer of {amount}")
            return TransferResult(success=False, error="recipient rejected transfer")

        self.sent.append((recipient, amount))
        return TransferResult(success=True, tx_hash=f"local-{uuid.uuid4().hex}")
