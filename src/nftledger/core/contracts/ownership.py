"""
Ownership index: token -> owner, account -> balance and owned tokens.

Every mutator validates first and only then touches state, so a raised
error leaves the index (and its enumeration orderings) unchanged.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..exceptions import (
    BalanceOverflowError,
    SelfTransferError,
    TokenExistsError,
    TokenNotExistsError,
)
from ..types import AccountId, TokenId
from .enumeration import EnumerationIndex


class OwnershipIndex:
    """
    Tracks the single owner of every existing token.

    Balances are bounded by ``max_balance``; an increment past it raises
    ``BalanceOverflowError`` instead of wrapping.
    """

    def __init__(self, max_balance: int = 2**32 - 1) -> None:
        self.max_balance = max_balance
        self._owners: Dict[TokenId, AccountId] = {}
        self._balances: Dict[AccountId, int] = {}
        self.enumeration = EnumerationIndex()

    # ==================== Queries ====================

    def owner_of(self, token: TokenId) -> Optional[AccountId]:
        return self._owners.get(token)

    def exists(self, token: TokenId) -> bool:
        return token in self._owners

    def balance_of(self, account: AccountId) -> int:
        return self._balances.get(account, 0)

    def tokens_of(self, account: AccountId) -> List[TokenId]:
        return self.enumeration.tokens_of(account)

    def total(self) -> int:
        return len(self._owners)

    def accounts(self) -> List[AccountId]:
        """Accounts currently holding at least one token."""
        return list(self._balances)

    # ==================== Validation ====================

    def require_exists(self, token: TokenId) -> AccountId:
        owner = self._owners.get(token)
        if owner is None:
            raise TokenNotExistsError(
                f"token {token} does not exist", details={"token_id": token.value}
            )
        return owner

    def require_can_receive(self, account: AccountId) -> None:
        balance = self.balance_of(account)
        if balance >= self.max_balance:
            raise BalanceOverflowError(
                f"balance of {account.short()} would exceed {self.max_balance}",
                details={"account": account.address, "balance": balance},
            )

    # ==================== Mutations ====================

    def insert(self, token: TokenId, owner: AccountId) -> None:
        """Create a new token owned by ``owner``."""
        if token in self._owners:
            raise TokenExistsError(
                f"token {token} already exists", details={"token_id": token.value}
            )
        self.require_can_receive(owner)

        self._owners[token] = owner
        self._balances[owner] = self.balance_of(owner) + 1
        self.enumeration.add(owner, token)

    def remove(self, token: TokenId) -> AccountId:
        """Destroy a token and return its last owner."""
        owner = self.require_exists(token)

        del self._owners[token]
        self._decrement(owner)
        self.enumeration.remove(owner, token)
        return owner

    def reassign(self, token: TokenId, new_owner: AccountId) -> AccountId:
        """Move a token to ``new_owner`` and return the previous owner."""
        previous = self.require_exists(token)
        if previous == new_owner:
            raise SelfTransferError(
                f"token {token} is already owned by {new_owner.short()}",
                details={"token_id": token.value, "owner": new_owner.address},
            )
        self.require_can_receive(new_owner)

        self._owners[token] = new_owner
        self._decrement(previous)
        self._balances[new_owner] = self.balance_of(new_owner) + 1
        self.enumeration.move(token, previous, new_owner)
        return previous

    def _decrement(self, account: AccountId) -> None:
        remaining = self._balances[account] - 1
        if remaining:
            self._balances[account] = remaining
        else:
            del self._balances[account]
