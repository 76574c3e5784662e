"""
Re-entrancy Conformance Tests

INVARIANT: At most one mutating operation is in progress at a time.

    ∀ operations O1, O2:
        O2 invoked while O1 is in progress ⟹ O2 raises ReentrantCall
                                              and applies nothing

Read-only queries remain available during an operation.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stableledger import ReentrantCall, to_wei

from tests.helpers import (
    DEPLOYER, ENGINE, USER,
    AMOUNT_COLLATERAL, AMOUNT_TO_MINT, STARTING_BALANCE,
    build_engine, capture_state, fund,
)
from tests.fakes import ReentrantToken


NESTED_CALLS = {
    "deposit": lambda e: e.deposit(USER, "WETH", 1),
    "mint": lambda e: e.mint(USER, 1),
    "burn": lambda e: e.burn(USER, 1),
    "redeem": lambda e: e.redeem(USER, "WETH", 1),
    "deposit_and_mint": lambda e: e.deposit_and_mint(USER, "WETH", 1, 1),
    "redeem_for_stable_unit": lambda e: e.redeem_for_stable_unit(USER, "WETH", 1, 1),
    "liquidate": lambda e: e.liquidate("mallory", "WETH", USER, 1),
}


def _reentrant_engine():
    weth = ReentrantToken("WETH", "Wrapped Ether", owner=DEPLOYER, verbose=False)
    engine, feed, weth, wbtc, susd = build_engine(weth=weth)
    fund(weth, USER, STARTING_BALANCE)
    return engine, weth, susd


class TestReentrancyProperties:

    @given(st.sampled_from(sorted(NESTED_CALLS)))
    @settings(max_examples=20, deadline=None)
    def test_nested_call_aborts_outer_operation(self, nested):
        """
        PROPERTY: Any mutating call made from inside a collaborator callback
        raises ReentrantCall, and the outer operation rolls back.
        """
        engine, weth, _ = _reentrant_engine()
        before = capture_state(engine)
        weth.on_transfer = lambda: NESTED_CALLS[nested](engine)

        with pytest.raises(ReentrantCall):
            engine.deposit(USER, "WETH", AMOUNT_COLLATERAL)

        assert capture_state(engine) == before


class TestReentrancyExamples:

    def test_swallowed_nested_call_applies_nothing(self):
        engine, weth, _ = _reentrant_engine()
        rejected = []

        def attempt_mint():
            try:
                engine.mint(USER, AMOUNT_TO_MINT)
            except ReentrantCall as exc:
                rejected.append(exc)

        weth.on_transfer = attempt_mint
        engine.deposit(USER, "WETH", AMOUNT_COLLATERAL)

        assert len(rejected) == 1
        assert engine.get_collateral_balance_of_user(USER, "WETH") == AMOUNT_COLLATERAL
        assert engine.accounts.get_debt(USER) == 0

    def test_queries_allowed_during_operation(self):
        engine, weth, _ = _reentrant_engine()
        seen = []
        weth.on_transfer = lambda: seen.append(engine.get_account_collateral_value(USER))

        engine.deposit(USER, "WETH", AMOUNT_COLLATERAL)

        # The account is credited before the pull
        assert seen == [to_wei(20000)]

    def test_guard_released_after_rejection(self):
        engine, weth, susd = _reentrant_engine()
        weth.on_transfer = lambda: engine.mint(USER, 1)
        with pytest.raises(ReentrantCall):
            engine.deposit(USER, "WETH", AMOUNT_COLLATERAL)

        weth.on_transfer = None
        engine.deposit_and_mint(USER, "WETH", AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
        assert susd.balance_of(USER) == AMOUNT_TO_MINT
        assert weth.balance_of(ENGINE) == AMOUNT_COLLATERAL
