"""
Custody module - owner-gated control of custodied value.
"""

from custodia.custody.controller import CustodyController
from custodia.custody.policy import OwnerPolicy

__all__ = [
    "CustodyController",
    "OwnerPolicy",
]
