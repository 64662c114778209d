"""
PSP34 capability interfaces.

The base standard and each optional extension are separate Protocols.
A host depends only on the capability it needs, and one concrete ledger
(``PSP34Ledger``) implements all of them over the same indices:

    def list_tokens(source: PSP34Enumerable, owner: AccountId) -> list[TokenId]:
        ...

    list_tokens(ledger, owner)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..events import LedgerEvent
    from ..types import AccountLike, AccountId, TokenId, TokenLike
    from .metadata import AttributeBytes


@runtime_checkable
class PSP34(Protocol):
    """Base standard: ownership, balances, approvals and transfer."""

    def collection_id(self) -> "TokenId":
        """Identity of this collection among other ledgers."""
        ...

    def balance_of(self, owner: "AccountLike") -> int:
        ...

    def owner_of(self, token: "TokenLike") -> Optional["AccountId"]:
        ...

    def allowance(
        self, owner: "AccountLike", operator: "AccountLike", token: Optional["TokenLike"] = None
    ) -> bool:
        """True if operator may move ``token`` (or any token when None) of owner."""
        ...

    def approve(
        self,
        caller: "AccountLike",
        operator: "AccountLike",
        token: Optional["TokenLike"] = None,
        approved: bool = True,
    ) -> list["LedgerEvent"]:
        ...

    def transfer(
        self, caller: "AccountLike", to: "AccountLike", token: "TokenLike", data: bytes = b""
    ) -> list["LedgerEvent"]:
        ...

    def total_supply(self) -> int:
        ...


@runtime_checkable
class PSP34Metadata(Protocol):
    def get_attribute(self, token: "TokenLike", key: "AttributeBytes") -> Optional[bytes]:
        ...

    def set_attribute(
        self, token: "TokenLike", key: "AttributeBytes", value: "AttributeBytes"
    ) -> list["LedgerEvent"]:
        ...


@runtime_checkable
class PSP34Enumerable(Protocol):
    """Index-based iteration. Indices are only valid until the next mutation."""

    def owner_token_by_index(self, owner: "AccountLike", index: int) -> Optional["TokenId"]:
        ...

    def token_by_index(self, index: int) -> Optional["TokenId"]:
        ...


@runtime_checkable
class PSP34Mintable(Protocol):
    def mint(
        self,
        to: "AccountLike",
        token: "TokenLike",
        attributes: Optional[Mapping["AttributeBytes", "AttributeBytes"]] = None,
    ) -> list["LedgerEvent"]:
        ...


@runtime_checkable
class PSP34Burnable(Protocol):
    def burn(self, caller: "AccountLike", token: "TokenLike") -> list["LedgerEvent"]:
        ...
