"""
Ledger events and their delivery to observers.

One event is produced per successful state change. Events are value
objects; delivery to sinks happens after the ledger state is committed,
so a failing sink never rolls anything back.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from .types import AccountId, TokenId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferEvent:
    """Token moved; ``from_account`` is None on mint, ``to_account`` None on burn."""

    from_account: Optional[AccountId]
    to_account: Optional[AccountId]
    token: TokenId
    timestamp: float = field(default_factory=time.time, compare=False)

    event_type = "Transfer"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "from": str(self.from_account) if self.from_account else None,
            "to": str(self.to_account) if self.to_account else None,
            "token_id": self.token.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Approval changed; ``token`` is None for operator (collection-wide) approvals."""

    owner: AccountId
    operator: AccountId
    token: Optional[TokenId]
    approved: bool
    timestamp: float = field(default_factory=time.time, compare=False)

    event_type = "Approval"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "owner": str(self.owner),
            "operator": str(self.operator),
            "token_id": self.token.value if self.token is not None else None,
            "approved": self.approved,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class AttributeSetEvent:
    token: TokenId
    key: bytes
    value: bytes
    timestamp: float = field(default_factory=time.time, compare=False)

    event_type = "AttributeSet"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "token_id": self.token.value,
            "key": self.key.hex(),
            "value": self.value.hex(),
            "timestamp": self.timestamp,
        }


LedgerEvent = Union[TransferEvent, ApprovalEvent, AttributeSetEvent]
EventSink = Callable[[LedgerEvent], None]


class EventDispatcher:
    """Fans committed events out to registered sinks."""

    def __init__(self, collection: str = "", on_failure: Optional[Callable[[], None]] = None):
        self.collection = collection
        self._sinks: list[EventSink] = []
        self._on_failure = on_failure

    def subscribe(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def dispatch(self, event: LedgerEvent) -> None:
        for sink in list(self._sinks):
            try:
                sink(event)
            except Exception as exc:
                # State is already committed; delivery problems are reported only
                logger.warning(
                    "Event sink failed: %s",
                    exc,
                    exc_info=True,
                    extra={
                        "event": "events.sink_failed",
                        "collection": self.collection,
                        "event_type": event.event_type,
                        "error_type": type(exc).__name__,
                    },
                )
                if self._on_failure is not None:
                    self._on_failure()
