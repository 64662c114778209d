"""
Metadata store: arbitrary byte-string attributes per token.
"""

from __future__ import annotations

from typing import Dict, Optional, Union

from ..exceptions import InvalidIdentifierError
from ..types import TokenId

AttributeBytes = Union[bytes, bytearray, str]


def as_attribute_bytes(raw: AttributeBytes, field_name: str = "attribute") -> bytes:
    """Attribute keys and values are bytes; str is accepted as UTF-8."""
    if isinstance(raw, str):
        return raw.encode("utf-8")
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    raise InvalidIdentifierError(
        f"{field_name} must be bytes or str, got {type(raw).__name__}",
        details={"field": field_name},
    )


class MetadataStore:
    """(token, key) -> value. Existence of the token is checked by the ledger."""

    def __init__(self) -> None:
        self._attributes: Dict[TokenId, Dict[bytes, bytes]] = {}

    def get_attribute(self, token: TokenId, key: bytes) -> Optional[bytes]:
        return self._attributes.get(token, {}).get(key)

    def set_attribute(self, token: TokenId, key: bytes, value: bytes) -> None:
        self._attributes.setdefault(token, {})[key] = value

    def attributes_of(self, token: TokenId) -> Dict[bytes, bytes]:
        return dict(self._attributes.get(token, {}))

    def clear_all(self, token: TokenId) -> None:
        self._attributes.pop(token, None)

    def __contains__(self, token: TokenId) -> bool:
        return token in self._attributes
