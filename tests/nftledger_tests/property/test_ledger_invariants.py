"""
Ledger Invariant Tests using Property-Based Testing

Random operation sequences are replayed against a ledger; after every
step supply conservation, ownership uniqueness, enumeration completeness
and approval clearing must hold, and rejected operations must leave the
ledger unchanged.
"""

import pytest
from hypothesis import given, settings, strategies as st

from nftledger.core.config import LedgerSettings
from nftledger.core.contracts import PSP34Ledger
from nftledger.core.exceptions import LedgerError
from nftledger.core.types import AccountId, TokenId

ACCOUNTS = [AccountId(f"0x{index:040x}") for index in range(1, 5)]
TOKENS = list(range(8))

account_strategy = st.sampled_from(ACCOUNTS)
token_strategy = st.sampled_from(TOKENS)

operation_strategy = st.one_of(
    st.tuples(st.just("mint"), account_strategy, token_strategy),
    st.tuples(st.just("burn"), account_strategy, token_strategy),
    st.tuples(st.just("transfer"), account_strategy, account_strategy, token_strategy),
    st.tuples(st.just("approve"), account_strategy, account_strategy, token_strategy, st.booleans()),
    st.tuples(st.just("operator"), account_strategy, account_strategy, st.booleans()),
)


def _new_ledger() -> PSP34Ledger:
    return PSP34Ledger(settings=LedgerSettings(max_supply=0, balance_bits=32))


def _apply(ledger: PSP34Ledger, operation) -> None:
    kind = operation[0]
    if kind == "mint":
        ledger.mint(operation[1], operation[2])
    elif kind == "burn":
        ledger.burn(operation[1], operation[2])
    elif kind == "transfer":
        ledger.transfer(operation[1], operation[2], operation[3])
    elif kind == "approve":
        ledger.approve(operation[1], operation[2], operation[3], operation[4])
    else:
        ledger.approve(operation[1], operation[2], None, operation[3])


def _state(ledger: PSP34Ledger):
    return (
        ledger.all_tokens(),
        {token: ledger.owner_of(token) for token in TOKENS},
        {token: ledger.get_approved(token) for token in TOKENS},
        {account: ledger.tokens_of(account) for account in ACCOUNTS},
        {(a, b): ledger.allowance(a, b) for a in ACCOUNTS for b in ACCOUNTS},
    )


def _assert_invariants(ledger: PSP34Ledger) -> None:
    supply = ledger.total_supply()
    assert supply == sum(ledger.balance_of(account) for account in ACCOUNTS)

    existing = {token for token in TOKENS if ledger.owner_of(token) is not None}
    assert len(existing) == supply
    assert {ledger.token_by_index(i).value for i in range(supply)} == existing
    assert ledger.token_by_index(supply) is None

    for account in ACCOUNTS:
        enumerated = {
            ledger.owner_token_by_index(account, i) for i in range(ledger.balance_of(account))
        }
        owned = {TokenId(token) for token in TOKENS if ledger.owner_of(token) == account}
        assert enumerated == owned
        assert not ledger.allowance(account, account)

    for token in TOKENS:
        if ledger.owner_of(token) is None:
            assert ledger.get_approved(token) is None

    assert ledger.verify_consistency()["is_consistent"]


class TestLedgerInvariants:
    @given(st.lists(operation_strategy, max_size=60))
    @settings(max_examples=200, deadline=None)
    def test_invariants_hold_after_every_operation(self, operations):
        ledger = _new_ledger()
        minted = burned = 0
        for operation in operations:
            before = _state(ledger)
            try:
                _apply(ledger, operation)
            except LedgerError:
                assert _state(ledger) == before
                continue
            if operation[0] == "mint":
                minted += 1
            elif operation[0] == "burn":
                burned += 1
            _assert_invariants(ledger)
        assert ledger.total_supply() == minted - burned

    @given(st.lists(operation_strategy, max_size=40), account_strategy, account_strategy)
    @settings(max_examples=100, deadline=None)
    def test_transfer_and_burn_clear_token_approval(self, operations, holder, spender):
        ledger = _new_ledger()
        for operation in operations:
            try:
                _apply(ledger, operation)
            except LedgerError:
                pass
        if holder == spender:
            return
        token = 100
        ledger.mint(holder, token)
        ledger.approve(holder, spender, token)
        assert ledger.allowance(holder, spender, token)
        receiver = next(account for account in ACCOUNTS if account != holder)
        ledger.transfer(holder, receiver, token)
        assert not ledger.allowance(holder, spender, token)
        assert not ledger.allowance(receiver, spender, token)
        ledger.burn(receiver, token)
        assert ledger.get_approved(token) is None

    @given(st.lists(token_strategy, min_size=1, max_size=8, unique=True), account_strategy)
    @settings(max_examples=100, deadline=None)
    def test_operator_persists_across_transfers(self, tokens, operator):
        owner = ACCOUNTS[0] if operator != ACCOUNTS[0] else ACCOUNTS[1]
        ledger = _new_ledger()
        ledger.approve(owner, operator, None, True)
        for token in tokens:
            ledger.mint(owner, token)
        receiver = next(account for account in ACCOUNTS if account != owner)
        for token in tokens:
            ledger.transfer(operator, receiver, token)
            assert ledger.allowance(owner, operator)
        assert ledger.balance_of(owner) == 0

    @given(token_strategy, account_strategy, account_strategy)
    def test_minting_existing_token_always_fails(self, token, first, second):
        ledger = _new_ledger()
        ledger.mint(first, token)
        with pytest.raises(LedgerError) as excinfo:
            ledger.mint(second, token)
        assert excinfo.value.code == "TokenExists"
        assert ledger.owner_of(token) == first
