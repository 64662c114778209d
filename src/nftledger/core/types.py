"""
Identifier value types used by the token ledger.

``TokenId`` is bounded by a 128-bit unsigned domain and totally ordered.
``AccountId`` is an opaque, hashable account reference. Both are frozen
dataclasses, so they are copied by value in and out of the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .exceptions import InvalidIdentifierError

MAX_TOKEN_ID = 2**128 - 1
TOKEN_ID_BYTES = 16

_WIDTH_BITS = {
    "u8": 8,
    "u16": 16,
    "u32": 32,
    "u64": 64,
    "u128": 128,
}


@dataclass(frozen=True, order=True)
class TokenId:
    """Unique identifier of a non-fungible token."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidIdentifierError(
                f"token id must be an integer, got {type(self.value).__name__}",
                details={"value": repr(self.value)},
            )
        if self.value < 0 or self.value > MAX_TOKEN_ID:
            raise InvalidIdentifierError(
                f"token id {self.value} outside 0..2**128-1",
                details={"value": self.value},
            )

    # ==================== Width Constructors ====================

    @classmethod
    def _of_width(cls, width: str, value: int) -> "TokenId":
        bits = _WIDTH_BITS[width]
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**bits:
            raise InvalidIdentifierError(
                f"token id {value!r} does not fit in {width}",
                details={"width": width, "value": repr(value)},
            )
        return cls(value)

    @classmethod
    def u8(cls, value: int) -> "TokenId":
        return cls._of_width("u8", value)

    @classmethod
    def u16(cls, value: int) -> "TokenId":
        return cls._of_width("u16", value)

    @classmethod
    def u32(cls, value: int) -> "TokenId":
        return cls._of_width("u32", value)

    @classmethod
    def u64(cls, value: int) -> "TokenId":
        return cls._of_width("u64", value)

    @classmethod
    def u128(cls, value: int) -> "TokenId":
        return cls._of_width("u128", value)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TokenId":
        """
        Build a token id from a big-endian byte string.

        Args:
            raw: At most 16 bytes

        Returns:
            TokenId with the decoded value

        Raises:
            InvalidIdentifierError: If the byte string is empty or too long
        """
        if not raw or len(raw) > TOKEN_ID_BYTES:
            raise InvalidIdentifierError(
                f"token id bytes must be 1..{TOKEN_ID_BYTES} long, got {len(raw)}",
                details={"length": len(raw)},
            )
        return cls(int.from_bytes(raw, "big"))

    def to_bytes(self) -> bytes:
        """Return the 16-byte big-endian encoding."""
        return self.value.to_bytes(TOKEN_ID_BYTES, "big")

    @classmethod
    def coerce(cls, token: "TokenLike") -> "TokenId":
        """Accept a TokenId, an int or a big-endian byte string."""
        if isinstance(token, TokenId):
            return token
        if isinstance(token, (bytes, bytearray)):
            return cls.from_bytes(bytes(token))
        return cls(token)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class AccountId:
    """Opaque account reference; compared exactly as given."""

    address: str

    def __post_init__(self) -> None:
        if not isinstance(self.address, str) or not self.address:
            raise InvalidIdentifierError(
                "account id must be a non-empty string",
                details={"value": repr(self.address)},
            )

    @classmethod
    def coerce(cls, account: "AccountLike") -> "AccountId":
        if isinstance(account, AccountId):
            return account
        return cls(account)

    def short(self) -> str:
        """Truncated form used in log records."""
        return self.address[:10]

    def __str__(self) -> str:
        return self.address


TokenLike = Union[TokenId, int, bytes]
AccountLike = Union[AccountId, str]
