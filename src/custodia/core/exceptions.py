"""
Exception hierarchy for Custodia.

All custody-specific exceptions inherit from CustodiaError for easy catching.
Every error is raised before anything is committed, so catching one never
leaves a partially applied call behind.
"""

from __future__ import annotations

from typing import Any


class CustodiaError(Exception):
    """
    Base exception for all Custodia errors.

    Catch this to handle any custody-related exception.

    Example:
        >>> try:
        ...     await custody.withdraw(caller, 100)
        ... except CustodiaError as e:
        ...     print(f"Withdrawal rejected: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CustodiaError):
    """
    Configuration is missing or invalid.

    Raised when:
    - The owner identity is missing or null
    - Configuration values fail validation
    - Storage is already bound to a different owner
    """

    pass


class ValidationError(CustodiaError):
    """
    Input validation error.

    Raised when:
    - Required parameters are missing
    - Parameter values are invalid
    """

    pass


class InvalidAmountError(ValidationError):
    """Amount is not a positive integer in the smallest currency unit."""

    def __init__(
        self,
        message: str,
        amount: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.amount = amount


class InvalidRecipientError(ValidationError):
    """Withdrawal destination is the null identifier."""

    def __init__(
        self,
        message: str,
        recipient: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.recipient = recipient


class InvalidSignatureError(ValidationError):
    """Raised when notification signature verification fails."""

    pass


class UnauthorizedError(CustodiaError):
    """
    Caller is not allowed to perform a restricted operation.

    Example:
        >>> try:
        ...     await custody.withdraw("0xintruder", 10)
        ... except UnauthorizedError as e:
        ...     print(f"{e.caller} may not {e.operation}")
    """

    def __init__(
        self,
        message: str,
        caller: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.caller = caller
        self.operation = operation

    def __str__(self) -> str:
        return f"[{self.operation}] {self.message}"


class InsufficientBalanceError(CustodiaError):
    """
    Custodied balance does not cover the requested withdrawal.

    Raised when:
    - Requested amount exceeds the current custodied balance
    """

    def __init__(
        self,
        message: str,
        current_balance: int,
        required_amount: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.current_balance = current_balance
        self.required_amount = required_amount
        self.shortfall = required_amount - current_balance

    def __str__(self) -> str:
        return (
            f"{self.message} | "
            f"Balance: {self.current_balance}, Required: {self.required_amount}, "
            f"Shortfall: {self.shortfall}"
        )


class NoBalanceError(CustodiaError):
    """Nothing is held in custody, so there is nothing to withdraw."""

    pass


class OutOfRangeError(CustodiaError):
    """Ledger lookup beyond the end of the log."""

    def __init__(
        self,
        message: str,
        index: int,
        count: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.index = index
        self.count = count


class TransferFailedError(CustodiaError):
    """
    The host rejected an outbound value transfer.

    The whole withdrawal is rolled back, including its log entry.
    """

    def __init__(
        self,
        message: str,
        recipient: str,
        amount: int,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.recipient = recipient
        self.amount = amount
        self.reason = reason

    def __str__(self) -> str:
        if self.reason:
            return f"{self.message} (recipient: {self.recipient}, reason: {self.reason})"
        return f"{self.message} (recipient: {self.recipient})"


class LockUnavailableError(CustodiaError):
    """The custody lock could not be acquired within the retry budget."""

    pass


class NotificationError(CustodiaError):
    """
    Notification delivery failed.

    Raised when:
    - The webhook endpoint is unreachable
    - The webhook endpoint returns a non-2xx status
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600


class StorageError(CustodiaError):
    """Storage backend failed while committing or reading custody state."""

    pass
