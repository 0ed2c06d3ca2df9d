"""
Custody controller.

Gates outbound value behind the owner and keeps the record-then-transfer
ordering: a withdrawal's ledger record is staged before the host is asked
to move value, and a failed transfer discards the record with everything
else the call staged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from custodia.core.exceptions import (
    ConfigurationError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRecipientError,
    NoBalanceError,
    TransferFailedError,
    ValidationError,
)
from custodia.core.types import (
    AmountType,
    AuditReport,
    TransactionKind,
    TransactionRecord,
    is_null_address,
    normalize_address,
    parse_amount,
)
from custodia.custody.policy import OwnerPolicy
from custodia.ledger.lock import CustodyLock

if TYPE_CHECKING:
    from custodia.host.base import CustodyHost
    from custodia.ledger.ledger import Ledger
    from custodia.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class CustodyController:
    """
    Single-owner custody over an append-only ledger.

    Deposits and reads are open to any caller. withdraw, withdraw_all and
    withdraw_to are restricted to the owner fixed at construction. Every
    mutating call runs under the custody lock inside one unit of work, so
    it either commits completely or leaves no trace.
    """

    COLLECTION = "custody"
    BALANCE_KEY = "balance"
    OWNER_KEY = "owner"

    def __init__(
        self,
        owner: str,
        ledger: Ledger,
        host: CustodyHost,
        storage: StorageBackend,
        lock: CustodyLock | None = None,
    ) -> None:
        """
        Initialize controller.

        Args:
            owner: The only identity allowed to withdraw
            ledger: Ledger store receiving every deposit and withdrawal
            host: Host performing outbound transfers
            storage: Backend holding the custodied balance and bound owner
            lock: Custody lock (defaults to one over storage)
        """
        self._policy = OwnerPolicy(owner)
        self._ledger = ledger
        self._host = host
        self._storage = storage
        self._lock = lock or CustodyLock(storage)
        self._owner_bound = False

    @property
    def owner(self) -> str:
        return self._policy.owner

    async def _ensure_owner(self) -> None:
        """Persist the owner on first use; refuse storage bound to someone else."""
        if self._owner_bound:
            return
        stored = await self._storage.get(self.COLLECTION, self.OWNER_KEY)
        if stored is None:
            await self._storage.save(self.COLLECTION, self.OWNER_KEY, {"owner": self.owner})
            logger.info(f"Bound custody to owner {self.owner}")
        elif normalize_address(stored["owner"]) != self.owner:
            raise ConfigurationError(
                "Storage is already bound to a different owner",
                details={"bound_owner": stored["owner"], "owner": self.owner},
            )
        self._owner_bound = True

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    async def deposit(self, caller: str, amount: AmountType) -> int:
        """
        Deposit value into custody.

        Args:
            caller: Depositor identity supplied by the host
            amount: Value carried with the call (must be positive)

        Returns:
            Index of the Deposit record

        Raises:
            InvalidAmountError: If amount is not a positive integer
        """
        value = parse_amount(amount)
        if value <= 0:
            logger.warning(f"Rejected deposit of {value} from {caller}")
            raise InvalidAmountError("Deposit amount must be positive", amount=amount)
        return await self._record_deposit("deposit", caller, value)

    async def receive(self, caller: str, amount: AmountType) -> int:
        """
        Record value that arrived without an explicit deposit call.

        The host only delivers positive value, so no positivity check is made.

        Returns:
            Index of the Deposit record
        """
        return await self._record_deposit("receive", caller, parse_amount(amount))

    async def _record_deposit(self, operation: str, caller: str | None, amount: int) -> int:
        self._policy.authorize(operation, caller)
        if caller is None or not caller.strip():
            logger.warning(f"Rejected {operation} without a depositor")
            raise ValidationError(
                "Depositor identity is required", details={"operation": operation}
            )
        participant = normalize_address(caller)

        async with self._lock.hold():
            await self._ensure_owner()
            async with self._ledger.unit_of_work() as unit:
                unit.stage_add(self.COLLECTION, self.BALANCE_KEY, amount)
                index = await self._ledger.append(
                    participant, amount, TransactionKind.DEPOSIT, unit=unit
                )

        logger.info(
            f"Deposit #{index}: {amount} from {participant}",
            extra={
                "operation": operation,
                "index": index,
                "amount": amount,
                "participant": participant,
            },
        )
        return index

    # ------------------------------------------------------------------
    # Withdrawals (owner only)
    # ------------------------------------------------------------------

    async def withdraw(self, caller: str, amount: AmountType) -> int:
        """
        Withdraw amount to the owner.

        Returns:
            Index of the Withdrawal record

        Raises:
            UnauthorizedError: If caller is not the owner
            InvalidAmountError: If amount is not positive
            InsufficientBalanceError: If amount exceeds the custodied balance
            TransferFailedError: If the host rejects the transfer
        """
        return await self._withdraw("withdraw", caller, self.owner, amount)

    async def withdraw_all(self, caller: str) -> int:
        """
        Withdraw the entire custodied balance to the owner.

        Raises:
            UnauthorizedError: If caller is not the owner
            NoBalanceError: If nothing is held in custody
            TransferFailedError: If the host rejects the transfer
        """
        return await self._withdraw("withdraw_all", caller, self.owner, None)

    async def withdraw_to(self, caller: str, recipient: str, amount: AmountType) -> int:
        """
        Withdraw amount to recipient.

        Raises:
            UnauthorizedError: If caller is not the owner
            InvalidRecipientError: If recipient is the null identifier
            InvalidAmountError: If amount is not positive
            InsufficientBalanceError: If amount exceeds the custodied balance
            TransferFailedError: If the host rejects the transfer
        """
        return await self._withdraw("withdraw_to", caller, recipient, amount)

    async def _withdraw(
        self,
        operation: str,
        caller: str,
        recipient: str,
        amount: AmountType | None,
    ) -> int:
        self._policy.authorize(operation, caller)

        if is_null_address(recipient):
            logger.warning(f"Rejected {operation} to null recipient")
            raise InvalidRecipientError("Recipient must not be the null address", recipient=recipient)
        recipient = normalize_address(recipient)

        value: int | None = None
        if amount is not None:
            value = parse_amount(amount)
            if value <= 0:
                logger.warning(f"Rejected {operation} of {value}")
                raise InvalidAmountError("Withdrawal amount must be positive", amount=amount)

        async with self._lock.hold() as lock_token:
            await self._ensure_owner()
            balance = await self.balance()

            if value is None:
                if balance == 0:
                    logger.warning(f"Rejected {operation}: nothing in custody")
                    raise NoBalanceError("No balance to withdraw")
                value = balance
            elif value > balance:
                logger.warning(f"Rejected {operation} of {value}: balance is {balance}")
                raise InsufficientBalanceError(
                    "Insufficient custodied balance",
                    current_balance=balance,
                    required_amount=value,
                )

            async with self._ledger.unit_of_work() as unit:
                # Record first; a failed transfer below discards it with the unit
                index = await self._ledger.append(
                    recipient, value, TransactionKind.WITHDRAWAL, unit=unit
                )
                unit.stage_add(self.COLLECTION, self.BALANCE_KEY, -value)
                await self._lock.ensure_held(lock_token)
                await self._transfer(recipient, value)

        logger.info(
            f"Withdrawal #{index}: {value} to {recipient}",
            extra={
                "operation": operation,
                "index": index,
                "amount": value,
                "participant": recipient,
            },
        )
        return index

    async def _transfer(self, recipient: str, amount: int) -> None:
        try:
            result = await self._host.transfer(recipient, amount)
        except Exception as e:
            logger.warning(f"Transfer of {amount} to {recipient} raised: {e}")
            raise TransferFailedError(
                "Transfer failed", recipient=recipient, amount=amount, reason=str(e)
            ) from e

        if not result.success:
            logger.warning(f"Transfer of {amount} to {recipient} rejected: {result.error}")
            raise TransferFailedError(
                "Transfer failed", recipient=recipient, amount=amount, reason=result.error
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def balance(self) -> int:
        """Current custodied balance."""
        data = await self._storage.get(self.COLLECTION, self.BALANCE_KEY)
        if not data:
            return 0
        return int(data["value"])

    async def transaction_count(self) -> int:
        return await self._ledger.count()

    async def transaction(self, index: int) -> TransactionRecord:
        """
        Ledger record at index.

        Raises:
            OutOfRangeError: If index >= transaction_count()
        """
        return await self._ledger.get(index)

    async def transactions(self, start: int = 0, limit: int | None = None) -> list[TransactionRecord]:
        return await self._ledger.list(start, limit)

    async def audit(self) -> AuditReport:
        """Compare ledger totals with the custodied balance."""
        report = AuditReport(balance=await self.balance(), totals=await self._ledger.totals())
        if not report.consistent:
            logger.error(
                f"Ledger and balance diverge: balance {report.balance}, "
                f"ledger net {report.totals.net}"
            )
        return report
