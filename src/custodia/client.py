"""Custodia - Main entry point."""

from __future__ import annotations

from typing import Any

from custodia.core.config import Config
from custodia.core.logging import configure_logging, get_logger
from custodia.core.types import AmountType, AuditReport, TransactionRecord
from custodia.custody.controller import CustodyController
from custodia.host.base import CustodyHost
from custodia.host.local import LocalHost
from custodia.ledger import CustodyLock, Ledger
from custodia.notifications.bus import EventBus
from custodia.notifications.webhook import WebhookNotifier
from custodia.storage import StorageBackend, get_storage


class Custodia:
    """
    Custodial ledger service.

    Wires configuration, storage, host, notifications and the custody
    controller into one long-lived instance. The owner is fixed when the
    instance is created; there is no way to change it afterwards.

    Example:
        >>> custody = Custodia(owner="0xOwner")
        >>> await custody.deposit("0xAlice", 100)
        >>> await custody.withdraw("0xOwner", 40)
        >>> await custody.balance()
        60
    """

    def __init__(
        self,
        owner: str | None = None,
        host: CustodyHost | None = None,
        storage: StorageBackend | None = None,
        config: Config | None = None,
        log_level: int | str | None = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize Custodia.

        Args:
            owner: Owner identity (or from CUSTODIA_OWNER env)
            host: Custody host (defaults to an in-process LocalHost)
            storage: Storage backend (defaults to the configured backend)
            config: Full configuration; built from env and overrides when omitted
            log_level: Logging level (default from config)
            **overrides: Extra Config fields used when config is omitted
        """
        if config is None:
            config = Config.from_env(owner=owner, **overrides)
        elif owner is not None:
            config = config.with_updates(owner=owner)
        self._config = config

        configure_logging(
            level=log_level if log_level is not None else config.log_level,
            json_format=config.log_json,
        )
        self._logger = get_logger("client")
        self._logger.info(f"Initializing Custodia (owner: {config.owner}, env: {config.env})")

        if storage is None:
            storage_kwargs = {}
            if config.storage_backend == "redis" and config.redis_url:
                storage_kwargs["redis_url"] = config.redis_url
            storage = get_storage(config.storage_backend, **storage_kwargs)
        self._storage = storage
        self._host = host or LocalHost()

        self._bus = EventBus()
        if config.webhook_url:
            self._bus.subscribe(
                WebhookNotifier(
                    config.webhook_url,
                    signing_key=config.webhook_signing_key,
                    timeout=config.webhook_timeout,
                )
            )
            self._logger.info(f"Delivering ledger events to {config.webhook_url}")

        self._ledger = Ledger(self._storage, self._host, self._bus)
        self._lock = CustodyLock(
            self._storage,
            ttl=config.lock_ttl,
            retry_count=config.lock_retry_count,
            retry_delay=config.lock_retry_delay,
        )
        self._controller = CustodyController(
            config.owner,
            self._ledger,
            self._host,
            self._storage,
            lock=self._lock,
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def owner(self) -> str:
        return self._controller.owner

    @property
    def events(self) -> EventBus:
        """Notification bus; subscribe here to observe Deposited/Withdrawn events."""
        return self._bus

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def host(self) -> CustodyHost:
        return self._host

    async def deposit(self, caller: str, amount: AmountType) -> int:
        return await self._controller.deposit(caller, amount)

    async def receive(self, caller: str, amount: AmountType) -> int:
        return await self._controller.receive(caller, amount)

    async def withdraw(self, caller: str, amount: AmountType) -> int:
        return await self._controller.withdraw(caller, amount)

    async def withdraw_all(self, caller: str) -> int:
        return await self._controller.withdraw_all(caller)

    async def withdraw_to(self, caller: str, recipient: str, amount: AmountType) -> int:
        return await self._controller.withdraw_to(caller, recipient, amount)

    async def balance(self) -> int:
        return await self._controller.balance()

    async def transaction_count(self) -> int:
        return await self._controller.transaction_count()

    async def transaction(self, index: int) -> TransactionRecord:
        return await self._controller.transaction(index)

    async def transactions(self, start: int = 0, limit: int | None = None) -> list[TransactionRecord]:
        return await self._controller.transactions(start, limit)

    async def audit(self) -> AuditReport:
        return await self._controller.audit()

    async def health_check(self) -> bool:
        return await self._storage.health_check()
