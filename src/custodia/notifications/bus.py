"""
In-process notification bus.

Delivers committed ledger events to subscribers in commit order.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable

from custodia.core.events import LedgerEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[LedgerEvent], Awaitable[None] | None]


class EventBus:
    """
    Fan-out of ledger events to observers.

    Handlers may be plain functions or coroutines. The bus is only ever
    handed events whose call has already committed, so a failing handler
    is logged and skipped rather than propagated.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        """Register a handler for every future event."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> bool:
        try:
            self._handlers.remove(handler)
        except ValueError:
            return False
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, events: Iterable[LedgerEvent]) -> None:
        """Deliver events to all handlers, in order."""
        for event in events:
            for handler in list(self._handlers):
                try:
                    result = handler(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception(
                        f"Notification handler {handler!r} failed for "
                        f"{event.type.value} #{event.index}"
                    )
