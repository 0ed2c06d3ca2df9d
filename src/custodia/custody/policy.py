"""
Access policy for custody operations.

Only one identity may move value out of custody. Every restricted
operation asks this policy before doing anything else.
"""

from __future__ import annotations

import logging

from custodia.core.exceptions import ConfigurationError, UnauthorizedError
from custodia.core.types import is_null_address, normalize_address

logger = logging.getLogger(__name__)


class OwnerPolicy:
    """Single-owner capability check."""

    RESTRICTED_OPERATIONS = frozenset({"withdraw", "withdraw_all", "withdraw_to"})

    def __init__(self, owner: str) -> None:
        if is_null_address(owner):
            raise ConfigurationError("owner is required")
        self._owner = normalize_address(owner)

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str | None) -> bool:
        if caller is None:
            return False
        return normalize_address(caller) == self._owner

    def is_restricted(self, operation: str) -> bool:
        return operation in self.RESTRICTED_OPERATIONS

    def authorize(self, operation: str, caller: str | None) -> None:
        """
        Check that caller may perform operation.

        Unrestricted operations always pass.

        Raises:
            UnauthorizedError: If operation is restricted and caller is not the owner
        """
        if not self.is_restricted(operation) or self.is_owner(caller):
            return
        logger.warning(f"Rejected {operation} from non-owner {caller}")
        raise UnauthorizedError(
            f"Caller {caller} is not the owner",
            caller=caller,
            operation=operation,
        )
