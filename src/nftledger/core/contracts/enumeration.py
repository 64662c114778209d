"""
Enumeration index: "i-th token" lookups over the live token set.

Each ordering is a dense list plus a reverse index from token to
position. Removal swaps the last element into the vacated slot, so
removal is O(1) but positions are NOT stable across removals. Indices
are only meaningful for iterating a snapshot between mutations.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from ..types import AccountId, TokenId


class DenseTokenList:
    """Dense, swap-remove ordered set of token ids."""

    __slots__ = ("_items", "_positions")

    def __init__(self) -> None:
        self._items: List[TokenId] = []
        self._positions: Dict[TokenId, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, token: TokenId) -> bool:
        return token in self._positions

    def __iter__(self) -> Iterator[TokenId]:
        return iter(list(self._items))

    def append(self, token: TokenId) -> None:
        if token in self._positions:
            raise KeyError(f"token {token} already enumerated")
        self._positions[token] = len(self._items)
        self._items.append(token)

    def swap_remove(self, token: TokenId) -> None:
        position = self._positions.pop(token)
        last = self._items.pop()
        if last != token:
            self._items[position] = last
            self._positions[last] = position

    def at(self, index: int) -> Optional[TokenId]:
        if index < 0 or index >= len(self._items):
            return None
        return self._items[index]

    def position_of(self, token: TokenId) -> Optional[int]:
        return self._positions.get(token)


class EnumerationIndex:
    """Global and per-owner orderings of existing tokens."""

    def __init__(self) -> None:
        self._all = DenseTokenList()
        self._by_owner: Dict[AccountId, DenseTokenList] = {}

    def add(self, owner: AccountId, token: TokenId) -> None:
        """Append a newly created token to both orderings."""
        self._all.append(token)
        self._owner_list(owner).append(token)

    def remove(self, owner: AccountId, token: TokenId) -> None:
        """Drop a destroyed token from both orderings."""
        self._all.swap_remove(token)
        self._drop_from_owner(owner, token)

    def move(self, token: TokenId, old_owner: AccountId, new_owner: AccountId) -> None:
        """Move a token between owners; the global ordering is unchanged."""
        self._drop_from_owner(old_owner, token)
        self._owner_list(new_owner).append(token)

    def token_by_index(self, index: int) -> Optional[TokenId]:
        return self._all.at(index)

    def owner_token_by_index(self, owner: AccountId, index: int) -> Optional[TokenId]:
        tokens = self._by_owner.get(owner)
        if tokens is None:
            return None
        return tokens.at(index)

    def tokens_of(self, owner: AccountId) -> List[TokenId]:
        """Snapshot of an owner's tokens in enumeration order."""
        tokens = self._by_owner.get(owner)
        return list(tokens) if tokens is not None else []

    def all_tokens(self) -> List[TokenId]:
        return list(self._all)

    def __len__(self) -> int:
        return len(self._all)

    def _owner_list(self, owner: AccountId) -> DenseTokenList:
        tokens = self._by_owner.get(owner)
        if tokens is None:
            tokens = self._by_owner[owner] = DenseTokenList()
        return tokens

    def _drop_from_owner(self, owner: AccountId, token: TokenId) -> None:
        tokens = self._by_owner[owner]
        tokens.swap_remove(token)
        if not tokens:
            del self._by_owner[owner]
