"""
Approval index: single-token approvals and collection-wide operators.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from ..exceptions import NotOwnerError, SelfApproveError
from ..types import AccountId, TokenId
from .ownership import OwnershipIndex


class ApprovalIndex:
    """
    Delegated transfer rights.

    A token has at most one approved account; a new approval replaces the
    old one. Operator grants are keyed by (owner, operator) and survive
    transfers of the owner's tokens.
    """

    def __init__(self, ownership: OwnershipIndex) -> None:
        self._ownership = ownership
        self._token_approvals: Dict[TokenId, AccountId] = {}
        self._operators: Dict[AccountId, Set[AccountId]] = {}

    # ==================== Queries ====================

    def get_approved(self, token: TokenId) -> Optional[AccountId]:
        return self._token_approvals.get(token)

    def is_operator(self, owner: AccountId, operator: AccountId) -> bool:
        return operator in self._operators.get(owner, ())

    def operators_of(self, owner: AccountId) -> List[AccountId]:
        return sorted(self._operators.get(owner, ()), key=lambda account: account.address)

    def is_approved_or_owner(self, account: AccountId, token: TokenId) -> bool:
        """Owner, token-approved account or operator of the owner."""
        owner = self._ownership.owner_of(token)
        if owner is None:
            return False
        return (
            account == owner
            or self._token_approvals.get(token) == account
            or self.is_operator(owner, account)
        )

    # ==================== Validation ====================

    def check_token_approval(
        self, token: TokenId, approved: Optional[AccountId], caller: AccountId
    ) -> AccountId:
        """Validate a single-token approval change and return the token owner."""
        owner = self._ownership.require_exists(token)
        if approved is not None and approved == owner:
            raise SelfApproveError(
                f"owner {owner.short()} cannot be approved for its own token {token}",
                details={"token_id": token.value, "owner": owner.address},
            )
        if caller != owner and not self.is_operator(owner, caller):
            raise NotOwnerError(
                f"{caller.short()} is neither owner nor operator for token {token}",
                details={"token_id": token.value, "caller": caller.address},
            )
        return owner

    def check_operator_approval(
        self, owner: AccountId, operator: AccountId, caller: AccountId
    ) -> None:
        if operator == owner:
            raise SelfApproveError(
                f"{owner.short()} cannot be its own operator",
                details={"owner": owner.address},
            )
        if caller != owner:
            raise NotOwnerError(
                f"only {owner.short()} may change its operators",
                details={"owner": owner.address, "caller": caller.address},
            )

    # ==================== Mutations ====================

    def approve_token(
        self, token: TokenId, approved: Optional[AccountId], caller: AccountId
    ) -> AccountId:
        """
        Set or clear the approved account of a token.

        Args:
            token: Token id
            approved: Account to approve, or None to clear
            caller: Account requesting the change

        Returns:
            The token owner

        Raises:
            TokenNotExistsError: If the token does not exist
            SelfApproveError: If ``approved`` is the owner
            NotOwnerError: If caller is neither owner nor operator
        """
        owner = self.check_token_approval(token, approved, caller)
        if approved is None:
            self.clear_token_approval(token)
        else:
            self._token_approvals[token] = approved
        return owner

    def approve_operator(
        self, owner: AccountId, operator: AccountId, approved: bool, caller: AccountId
    ) -> None:
        """Grant or revoke collection-wide rights; repeating a call is a no-op."""
        self.check_operator_approval(owner, operator, caller)
        if approved:
            self._operators.setdefault(owner, set()).add(operator)
            return
        operators = self._operators.get(owner)
        if operators is not None:
            operators.discard(operator)
            if not operators:
                del self._operators[owner]

    def clear_token_approval(self, token: TokenId) -> None:
        self._token_approvals.pop(token, None)
