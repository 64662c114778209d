"""
PSP34 Non-Fungible Token ledger.

This module provides an in-memory PSP34 implementation, including:
- Basic NFT operations (transfer, approve, allowance)
- Enumerable extension (token_by_index, owner_token_by_index)
- Metadata extension (byte-string attributes per token)
- Minting and burning, with an optional supply cap

Every public operation is atomic: all checks run before the first
mutation, and calls are serialized by a single lock per ledger.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

from ..config import LedgerSettings
from ..events import (
    ApprovalEvent,
    AttributeSetEvent,
    EventDispatcher,
    EventSink,
    LedgerEvent,
    TransferEvent,
)
from ..exceptions import (
    CustomLedgerError,
    LedgerError,
    NotApprovedError,
    ReachedMaxSupplyError,
    SafeTransferCheckFailedError,
    SelfTransferError,
)
from ..metrics import LedgerMetrics
from ..types import AccountId, AccountLike, TokenId, TokenLike
from .approvals import ApprovalIndex
from .metadata import AttributeBytes, MetadataStore, as_attribute_bytes
from .ownership import OwnershipIndex

logger = logging.getLogger(__name__)

# (caller, from, to, token, data) -> accepted; may read the ledger, not mutate it
ReceiverCheck = Callable[[AccountId, AccountId, AccountId, TokenId, bytes], bool]

_default_metrics: Optional[LedgerMetrics] = None
_default_metrics_lock = threading.Lock()


def _shared_metrics() -> LedgerMetrics:
    """One collector set per process when metrics are enabled by config."""
    global _default_metrics
    with _default_metrics_lock:
        if _default_metrics is None:
            _default_metrics = LedgerMetrics()
        return _default_metrics


class PSP34Ledger:
    """
    PSP34 token ledger with Metadata, Enumerable, Mintable and Burnable
    capabilities over one set of indices.

    Security features:
    - Owner/approved/operator verification on transfer and burn
    - Approval clearing on every transfer and burn
    - Self-approval and self-transfer rejection
    - Bounded balance counters and optional supply cap
    """

    def __init__(
        self,
        collection_id: TokenLike = 0,
        max_supply: Optional[int] = None,
        settings: Optional[LedgerSettings] = None,
        receiver_check: Optional[ReceiverCheck] = None,
        metrics: Optional[LedgerMetrics] = None,
    ) -> None:
        self.settings = settings or LedgerSettings.from_env()
        self._collection_id = TokenId.coerce(collection_id)
        self._max_supply = self.settings.max_supply if max_supply is None else max_supply
        if self._max_supply < 0:
            raise CustomLedgerError(f"max_supply must be >= 0, got {self._max_supply}")

        self._ownership = OwnershipIndex(max_balance=self.settings.max_balance)
        self._approvals = ApprovalIndex(self._ownership)
        self._metadata = MetadataStore()
        self._receiver_check = receiver_check

        if metrics is None and self.settings.metrics_enabled:
            metrics = _shared_metrics()
        self._metrics = metrics

        self._lock = threading.RLock()
        self._mutating = False
        self.events: List[LedgerEvent] = []

        # Committed events awaiting delivery, in commit order
        self._pending: Deque[LedgerEvent] = deque()
        self._delivery_lock = threading.Lock()
        self._delivering = False
        self._dispatcher = EventDispatcher(
            collection=self._label,
            on_failure=self._record_sink_failure,
        )
        self.created_at = time.time()

    @property
    def _label(self) -> str:
        return str(self._collection_id)

    # ==================== View Functions ====================

    def collection_id(self) -> TokenId:
        return self._collection_id

    def total_supply(self) -> int:
        """Get number of tokens currently in existence."""
        with self._lock:
            return self._ownership.total()

    def max_supply(self) -> int:
        """Supply cap; 0 means unlimited."""
        return self._max_supply

    def balance_of(self, owner: AccountLike) -> int:
        """
        Get number of tokens owned by an account.

        Args:
            owner: Owner account

        Returns:
            Number of tokens owned (0 for unknown accounts)
        """
        with self._lock:
            return self._ownership.balance_of(AccountId.coerce(owner))

    def owner_of(self, token: TokenLike) -> Optional[AccountId]:
        """
        Get the owner of a token.

        Args:
            token: Token id

        Returns:
            Owner account, or None if the token does not exist
        """
        with self._lock:
            return self._ownership.owner_of(TokenId.coerce(token))

    def get_approved(self, token: TokenLike) -> Optional[AccountId]:
        with self._lock:
            return self._approvals.get_approved(TokenId.coerce(token))

    def allowance(
        self,
        owner: AccountLike,
        operator: AccountLike,
        token: Optional[TokenLike] = None,
    ) -> bool:
        """
        Check delegated rights.

        With a token, returns True if ``operator`` holds the single-token
        approval of a token currently owned by ``owner``. Without a token,
        returns True if ``operator`` is an approved operator of ``owner``.
        Never raises for unknown tokens or accounts.
        """
        owner_id = AccountId.coerce(owner)
        operator_id = AccountId.coerce(operator)
        with self._lock:
            if token is None:
                return self._approvals.is_operator(owner_id, operator_id)
            token_id = TokenId.coerce(token)
            return (
                self._ownership.owner_of(token_id) == owner_id
                and self._approvals.get_approved(token_id) == operator_id
            )

    def is_approved_or_owner(self, account: AccountLike, token: TokenLike) -> bool:
        with self._lock:
            return self._approvals.is_approved_or_owner(
                AccountId.coerce(account), TokenId.coerce(token)
            )

    # ==================== Enumerable ====================

    def token_by_index(self, index: int) -> Optional[TokenId]:
        """
        Get token id at ``index`` of all existing tokens.

        Positions change when tokens are burned (the last token fills the
        gap), so only iterate between mutations.
        """
        with self._lock:
            return self._ownership.enumeration.token_by_index(index)

    def owner_token_by_index(self, owner: AccountLike, index: int) -> Optional[TokenId]:
        """Get token id at ``index`` of an owner's tokens; None if out of range."""
        with self._lock:
            return self._ownership.enumeration.owner_token_by_index(
                AccountId.coerce(owner), index
            )

    def tokens_of(self, owner: AccountLike) -> List[TokenId]:
        with self._lock:
            return self._ownership.tokens_of(AccountId.coerce(owner))

    def all_tokens(self) -> List[TokenId]:
        with self._lock:
            return self._ownership.enumeration.all_tokens()

    # ==================== Metadata ====================

    def get_attribute(self, token: TokenLike, key: AttributeBytes) -> Optional[bytes]:
        with self._lock:
            return self._metadata.get_attribute(
                TokenId.coerce(token), as_attribute_bytes(key, "key")
            )

    def attributes_of(self, token: TokenLike) -> Dict[bytes, bytes]:
        with self._lock:
            return self._metadata.attributes_of(TokenId.coerce(token))

    def set_attribute(
        self, token: TokenLike, key: AttributeBytes, value: AttributeBytes
    ) -> List[LedgerEvent]:
        """
        Set an attribute on an existing token, overwriting any previous value.

        Raises:
            TokenNotExistsError: If the token does not exist
        """
        token_id = TokenId.coerce(token)
        key_bytes = as_attribute_bytes(key, "key")
        value_bytes = as_attribute_bytes(value, "value")

        def apply() -> List[LedgerEvent]:
            self._ownership.require_exists(token_id)
            self._metadata.set_attribute(token_id, key_bytes, value_bytes)
            return [AttributeSetEvent(token=token_id, key=key_bytes, value=value_bytes)]

        return self._execute("set_attribute", apply)

    # ==================== State-Changing Functions ====================

    def approve(
        self,
        caller: AccountLike,
        operator: AccountLike,
        token: Optional[TokenLike] = None,
        approved: bool = True,
    ) -> List[LedgerEvent]:
        """
        Approve or revoke ``operator``.

        With a token, sets (or clears) the single-token approval; the caller
        must be the owner or one of the owner's operators. Without a token,
        grants or revokes collection-wide operator rights over the caller's
        tokens. Revoking a token approval held by a different account is a
        no-op.

        Args:
            caller: Message sender
            operator: Account receiving or losing the rights
            token: Token id, or None for operator approval
            approved: Grant (True) or revoke (False)

        Returns:
            The emitted Approval event

        Raises:
            TokenNotExistsError: If the token does not exist
            NotOwnerError: If the caller may not change the approval
            SelfApproveError: If the owner approves itself
        """
        caller_id = AccountId.coerce(caller)
        operator_id = AccountId.coerce(operator)
        token_id = TokenId.coerce(token) if token is not None else None

        def apply() -> List[LedgerEvent]:
            if token_id is None:
                self._approvals.approve_operator(caller_id, operator_id, approved, caller_id)
                owner = caller_id
            elif approved:
                owner = self._approvals.approve_token(token_id, operator_id, caller_id)
            else:
                owner = self._approvals.check_token_approval(token_id, None, caller_id)
                if self._approvals.get_approved(token_id) == operator_id:
                    self._approvals.clear_token_approval(token_id)
            return [
                ApprovalEvent(
                    owner=owner, operator=operator_id, token=token_id, approved=approved
                )
            ]

        return self._execute("approve", apply)

    def transfer(
        self,
        caller: AccountLike,
        to: AccountLike,
        token: TokenLike,
        data: bytes = b"",
    ) -> List[LedgerEvent]:
        """
        Transfer a token from its current owner to ``to``.

        Args:
            caller: Message sender (owner, approved account or operator)
            to: New owner
            token: Token id
            data: Opaque payload handed to the receiver check

        Returns:
            The emitted Transfer event

        Raises:
            TokenNotExistsError: If the token does not exist
            NotApprovedError: If the caller is not authorized
            SelfTransferError: If ``to`` already owns the token
            BalanceOverflowError: If the recipient balance is saturated
            SafeTransferCheckFailedError: If the receiver check rejects it
        """
        caller_id = AccountId.coerce(caller)
        to_id = AccountId.coerce(to)
        token_id = TokenId.coerce(token)
        return self._execute(
            "transfer", lambda: self._transfer(caller_id, None, to_id, token_id, bytes(data))
        )

    def transfer_from(
        self,
        caller: AccountLike,
        from_account: AccountLike,
        to: AccountLike,
        token: TokenLike,
        data: bytes = b"",
    ) -> List[LedgerEvent]:
        """Like ``transfer`` but also asserts the current owner is ``from_account``."""
        caller_id = AccountId.coerce(caller)
        from_id = AccountId.coerce(from_account)
        to_id = AccountId.coerce(to)
        token_id = TokenId.coerce(token)
        return self._execute(
            "transfer_from",
            lambda: self._transfer(caller_id, from_id, to_id, token_id, bytes(data)),
        )

    def _transfer(
        self,
        caller: AccountId,
        expected_owner: Optional[AccountId],
        to: AccountId,
        token: TokenId,
        data: bytes,
    ) -> List[LedgerEvent]:
        """Internal transfer logic."""
        owner = self._ownership.require_exists(token)

        if expected_owner is not None and owner != expected_owner:
            raise NotApprovedError(
                f"token {token} is not owned by {expected_owner.short()}",
                details={"token_id": token.value, "from": expected_owner.address},
            )

        if not self._approvals.is_approved_or_owner(caller, token):
            raise NotApprovedError(
                f"{caller.short()} is not owner nor approved for token {token}",
                details={"token_id": token.value, "caller": caller.address},
            )

        if owner == to:
            raise SelfTransferError(
                f"token {token} is already owned by {to.short()}",
                details={"token_id": token.value, "owner": to.address},
            )
        self._ownership.require_can_receive(to)
        self._run_receiver_check(caller, owner, to, token, data)

        self._approvals.clear_token_approval(token)
        self._ownership.reassign(token, to)

        logger.debug(
            "PSP34 transfer",
            extra={
                "event": "psp34.transfer",
                "collection": self._label,
                "token_id": token.value,
                "from": owner.short(),
                "to": to.short(),
            },
        )
        return [TransferEvent(from_account=owner, to_account=to, token=token)]

    def _run_receiver_check(
        self, caller: AccountId, owner: AccountId, to: AccountId, token: TokenId, data: bytes
    ) -> None:
        if self._receiver_check is None:
            return
        try:
            accepted = self._receiver_check(caller, owner, to, token, data)
        except SafeTransferCheckFailedError:
            raise
        except LedgerError as exc:
            raise SafeTransferCheckFailedError(
                f"receiver {to.short()} rejected token {token}: {exc.message}",
                details={"token_id": token.value, "to": to.address, "reason": exc.code},
            ) from exc
        if not accepted:
            raise SafeTransferCheckFailedError(
                f"receiver {to.short()} rejected token {token}",
                details={"token_id": token.value, "to": to.address},
            )

    # ==================== Minting & Burning ====================

    def mint(
        self,
        to: AccountLike,
        token: TokenLike,
        attributes: Optional[Mapping[AttributeBytes, AttributeBytes]] = None,
    ) -> List[LedgerEvent]:
        """
        Mint a new token.

        Args:
            to: Recipient account
            token: Token id, must not exist
            attributes: Optional initial metadata attributes

        Returns:
            The Transfer event followed by one AttributeSet event per attribute

        Raises:
            TokenExistsError: If the token already exists
            ReachedMaxSupplyError: If the supply cap is reached
            BalanceOverflowError: If the recipient balance is saturated
        """
        to_id = AccountId.coerce(to)
        token_id = TokenId.coerce(token)
        initial: List[Tuple[bytes, bytes]] = [
            (as_attribute_bytes(key, "key"), as_attribute_bytes(value, "value"))
            for key, value in (attributes or {}).items()
        ]

        def apply() -> List[LedgerEvent]:
            if self._max_supply and not self._ownership.exists(token_id):
                if self._ownership.total() >= self._max_supply:
                    raise ReachedMaxSupplyError(
                        f"max supply {self._max_supply} reached",
                        details={"max_supply": self._max_supply},
                    )
            self._ownership.insert(token_id, to_id)

            emitted: List[LedgerEvent] = [
                TransferEvent(from_account=None, to_account=to_id, token=token_id)
            ]
            for key, value in initial:
                self._metadata.set_attribute(token_id, key, value)
                emitted.append(AttributeSetEvent(token=token_id, key=key, value=value))

            logger.info(
                "PSP34 mint",
                extra={
                    "event": "psp34.mint",
                    "collection": self._label,
                    "token_id": token_id.value,
                    "to": to_id.short(),
                },
            )
            return emitted

        return self._execute("mint", apply)

    def burn(self, caller: AccountLike, token: TokenLike) -> List[LedgerEvent]:
        """
        Burn a token, removing its approval and metadata.

        Args:
            caller: Message sender (owner, approved account or operator)
            token: Token id to burn

        Raises:
            TokenNotExistsError: If the token does not exist
            NotApprovedError: If the caller is not authorized
        """
        caller_id = AccountId.coerce(caller)
        token_id = TokenId.coerce(token)

        def apply() -> List[LedgerEvent]:
            owner = self._ownership.require_exists(token_id)
            if not self._approvals.is_approved_or_owner(caller_id, token_id):
                raise NotApprovedError(
                    f"{caller_id.short()} is not owner nor approved for token {token_id}",
                    details={"token_id": token_id.value, "caller": caller_id.address},
                )

            self._approvals.clear_token_approval(token_id)
            self._metadata.clear_all(token_id)
            self._ownership.remove(token_id)

            logger.info(
                "PSP34 burn",
                extra={
                    "event": "psp34.burn",
                    "collection": self._label,
                    "token_id": token_id.value,
                    "from": owner.short(),
                },
            )
            return [TransferEvent(from_account=owner, to_account=None, token=token_id)]

        return self._execute("burn", apply)

    # ==================== Events ====================

    def subscribe(self, sink: EventSink) -> None:
        """
        Register a sink called with every event after it is committed.

        Sinks run outside the ledger lock, in commit order, and may call
        back into the ledger; their own events are delivered after the
        events already queued.
        """
        self._dispatcher.subscribe(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        self._dispatcher.unsubscribe(sink)

    def drain_events(self) -> List[LedgerEvent]:
        """Return the retained event log and clear it."""
        with self._lock:
            drained = list(self.events)
            self.events.clear()
            return drained

    # ==================== Consistency ====================

    def verify_consistency(self) -> Dict[str, Any]:
        """
        Cross-check the indices.

        Returns:
            {"is_consistent": bool, "issues": [str, ...]}
        """
        issues: List[str] = []
        with self._lock:
            ownership = self._ownership
            accounts = ownership.accounts()
            balance_sum = sum(ownership.balance_of(account) for account in accounts)
            if balance_sum != ownership.total():
                issues.append(
                    f"sum of balances {balance_sum} != total supply {ownership.total()}"
                )
            if len(ownership.enumeration) != ownership.total():
                issues.append("global enumeration size differs from total supply")
            for account in accounts:
                owned = ownership.tokens_of(account)
                if len(owned) != ownership.balance_of(account):
                    issues.append(f"enumeration of {account.short()} differs from balance")
                for token in owned:
                    if ownership.owner_of(token) != account:
                        issues.append(f"token {token} enumerated under wrong owner")
            for token in ownership.enumeration.all_tokens():
                if self._approvals.get_approved(token) == ownership.owner_of(token):
                    issues.append(f"token {token} approved to its own owner")
        return {"is_consistent": not issues, "issues": issues}

    # ==================== Helpers ====================

    def _execute(self, operation: str, apply: Callable[[], List[LedgerEvent]]) -> List[LedgerEvent]:
        """
        Run one operation under the ledger lock, then publish its events.

        Mutations are not re-entrant: a receiver check that calls back into a
        mutating operation of the same ledger is rejected, so validated state
        cannot change before the outer operation commits. Events are delivered
        after the lock is released.
        """
        with self._lock:
            try:
                if self._mutating:
                    raise CustomLedgerError(
                        f"{operation} called while another operation is in progress",
                        details={"operation": operation},
                    )
                self._mutating = True
                try:
                    emitted = apply()
                finally:
                    self._mutating = False
            except LedgerError as exc:
                logger.debug(
                    "PSP34 %s rejected: %s",
                    operation,
                    exc.message,
                    extra={
                        "event": f"psp34.{operation}.rejected",
                        "collection": self._label,
                        "error_type": exc.code,
                    },
                )
                self._record(operation, exc.code)
                raise

            self._retain(emitted)
            self._record(operation, "success")
            self._pending.extend(emitted)

        self._deliver_pending()
        return emitted

    def _retain(self, emitted: List[LedgerEvent]) -> None:
        self.events.extend(emitted)
        overflow = len(self.events) - self.settings.event_log_size
        if overflow > 0:
            del self.events[:overflow]

    def _deliver_pending(self) -> None:
        """Drain queued events to sinks; one thread delivers at a time."""
        with self._delivery_lock:
            if self._delivering:
                return
            self._delivering = True

        while True:
            with self._delivery_lock:
                if not self._pending:
                    self._delivering = False
                    return
                event = self._pending.popleft()
            try:
                self._dispatcher.dispatch(event)
            except BaseException:
                with self._delivery_lock:
                    self._delivering = False
                raise

    def _record(self, operation: str, outcome: str) -> None:
        if self._metrics is None:
            return
        self._metrics.record_operation(self._label, operation, outcome)
        if outcome == "success":
            self._metrics.set_total_supply(self._label, self._ownership.total())

    def _record_sink_failure(self) -> None:
        if self._metrics is not None:
            self._metrics.record_sink_failure(self._label)

    def __repr__(self) -> str:
        return (
            f"PSP34Ledger(collection_id={self._label}, "
            f"total_supply={self._ownership.total()}, max_supply={self._max_supply})"
        )


class PSP34Factory:
    """Factory and registry for PSP34 collections keyed by collection id."""

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        metrics: Optional[LedgerMetrics] = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.deployed_collections: Dict[TokenId, PSP34Ledger] = {}
        self._lock = threading.Lock()

    def create_collection(
        self,
        collection_id: TokenLike,
        max_supply: Optional[int] = None,
        receiver_check: Optional[ReceiverCheck] = None,
    ) -> PSP34Ledger:
        """
        Create and register a new collection.

        Args:
            collection_id: Identity of the collection
            max_supply: Supply cap (None = from settings, 0 = unlimited)
            receiver_check: Optional transfer receiver check

        Returns:
            The new ledger

        Raises:
            CustomLedgerError: If the collection id is already registered
        """
        collection_key = TokenId.coerce(collection_id)
        with self._lock:
            if collection_key in self.deployed_collections:
                raise CustomLedgerError(
                    f"collection {collection_key} already exists",
                    details={"collection_id": collection_key.value},
                )
            ledger = PSP34Ledger(
                collection_id=collection_key,
                max_supply=max_supply,
                settings=self.settings,
                receiver_check=receiver_check,
                metrics=self.metrics,
            )
            self.deployed_collections[collection_key] = ledger

        logger.info(
            "PSP34 collection created",
            extra={
                "event": "psp34.created",
                "collection": str(collection_key),
                "max_supply": ledger.max_supply(),
            },
        )
        return ledger

    def get_collection(self, collection_id: TokenLike) -> Optional[PSP34Ledger]:
        with self._lock:
            return self.deployed_collections.get(TokenId.coerce(collection_id))

    def list_collections(self) -> List[Dict[str, Any]]:
        """List all deployed collections."""
        with self._lock:
            collections = list(self.deployed_collections.items())
        return [
            {
                "collection_id": key.value,
                "total_supply": ledger.total_supply(),
                "max_supply": ledger.max_supply(),
            }
            for key, ledger in collections
        ]
