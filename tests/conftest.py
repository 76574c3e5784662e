"""
conftest.py - Shared pytest fixtures for stableledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Price feed, collateral tokens and the stable unit
- Engines in progressively richer states (empty, deposited, minted)
"""

import pytest

from stableledger import StableUnit, TokenLedger, StaticPriceFeed

from tests.helpers import (
    DEPLOYER, ENGINE, USER,
    WETH_PRICE, WBTC_PRICE,
    AMOUNT_COLLATERAL, AMOUNT_TO_MINT, STARTING_BALANCE,
    build_engine, fund,
)


@pytest.fixture
def feed():
    return StaticPriceFeed({"WETH": WETH_PRICE, "WBTC": WBTC_PRICE})


@pytest.fixture
def weth():
    return TokenLedger("WETH", "Wrapped Ether", owner=DEPLOYER, verbose=False)


@pytest.fixture
def wbtc():
    return TokenLedger("WBTC", "Wrapped Bitcoin", owner=DEPLOYER, verbose=False)


@pytest.fixture
def susd():
    return StableUnit(owner=ENGINE, verbose=False)


@pytest.fixture
def engine(feed, weth, wbtc, susd):
    """Engine with no accounts; alice holds STARTING_BALANCE WETH approved to the engine."""
    engine, *_ = build_engine(feed, weth, wbtc, susd)
    fund(weth, USER, STARTING_BALANCE)
    return engine


@pytest.fixture
def deposited(engine):
    """Alice has deposited AMOUNT_COLLATERAL WETH."""
    engine.deposit(USER, "WETH", AMOUNT_COLLATERAL)
    return engine


@pytest.fixture
def minted(engine):
    """Alice has deposited AMOUNT_COLLATERAL WETH, minted AMOUNT_TO_MINT and approved it back."""
    engine.deposit_and_mint(USER, "WETH", AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
    engine.stable_unit.approve(USER, ENGINE, AMOUNT_TO_MINT)
    return engine
