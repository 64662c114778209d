"""
nftledger - in-memory transactional PSP34 non-fungible token ledger.
"""

from nftledger.core.contracts import PSP34Factory, PSP34Ledger
from nftledger.core.events import ApprovalEvent, AttributeSetEvent, TransferEvent
from nftledger.core.exceptions import (
    BalanceOverflowError,
    CustomLedgerError,
    InvalidIdentifierError,
    LedgerError,
    NotApprovedError,
    NotOwnerError,
    ReachedMaxSupplyError,
    SafeTransferCheckFailedError,
    SelfApproveError,
    SelfTransferError,
    TokenExistsError,
    TokenNotExistsError,
)
from nftledger.core.types import MAX_TOKEN_ID, AccountId, TokenId

__version__ = "0.1.0"

__all__ = [
    "PSP34Ledger",
    "PSP34Factory",
    "AccountId",
    "TokenId",
    "MAX_TOKEN_ID",
    "TransferEvent",
    "ApprovalEvent",
    "AttributeSetEvent",
    "LedgerError",
    "TokenExistsError",
    "TokenNotExistsError",
    "NotOwnerError",
    "NotApprovedError",
    "SelfApproveError",
    "SelfTransferError",
    "SafeTransferCheckFailedError",
    "ReachedMaxSupplyError",
    "BalanceOverflowError",
    "CustomLedgerError",
    "InvalidIdentifierError",
]
