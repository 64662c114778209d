"""
Ledger-specific exception hierarchy for nftledger.

Provides typed exceptions for token ledger operations so hosting
environments can distinguish every failure kind precisely. Every error
is raised before the ledger mutates any state.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class LedgerError(Exception):
    """Base exception for all token ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
    """

    code = "LedgerError"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs and API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


# ==================== Token Existence ====================


class TokenExistsError(LedgerError):
    """Raised when minting a token id that is already owned."""

    code = "TokenExists"


class TokenNotExistsError(LedgerError):
    """Raised when an operation references a token that does not exist."""

    code = "TokenNotExists"


# ==================== Authorization ====================


class NotOwnerError(LedgerError):
    """Raised when the caller lacks owner authority for an approval change."""

    code = "NotOwner"


class NotApprovedError(LedgerError):
    """Raised when the caller may not transfer or burn a token.

    The caller is neither the owner, the token's approved account, nor an
    approved operator of the owner.
    """

    code = "NotApproved"


class SelfApproveError(LedgerError):
    """Raised when an owner approves itself, as operator or for a token."""

    code = "SelfApprove"


class SelfTransferError(LedgerError):
    """Raised when a token is transferred to its current owner."""

    code = "SelfTransfer"


# ==================== Transfer Checks ====================


class SafeTransferCheckFailedError(LedgerError):
    """Raised when a recipient receiver check rejects a transfer.

    The ledger does not perform receipt callbacks itself; hosting
    environments install a receiver check that may reject the transfer.
    """

    code = "SafeTransferCheckFailed"


# ==================== Supply & Counters ====================


class ReachedMaxSupplyError(LedgerError):
    """Raised when minting would exceed the collection's supply cap."""

    code = "ReachedMaxSupply"


class BalanceOverflowError(LedgerError):
    """Raised when an account balance would exceed the counter width."""

    code = "BalanceOverflow"


# ==================== Hosting & Input Errors ====================


class CustomLedgerError(LedgerError):
    """Raised for restrictions added by the hosting environment."""

    code = "Custom"


class InvalidIdentifierError(LedgerError, ValueError):
    """Raised when a value cannot be used as a token or account identifier."""

    code = "InvalidIdentifier"
