"""
helpers.py - Shared constants and builders for stableledger tests

Amounts follow the usual fixture layout: WETH at $2000, WBTC at $1000 on an
8-decimal feed, alice deposits 10 WETH and mints 100 stable units.
"""

from typing import Any, Dict, Tuple

from stableledger import (
    RiskEngine, StableUnit, TokenLedger, StaticPriceFeed,
    to_wei,
)


DEPLOYER = "deployer"
ENGINE = "engine"
USER = "alice"
LIQUIDATOR = "liquidator"

WETH_PRICE = to_wei(2000, 8)
WBTC_PRICE = to_wei(1000, 8)

AMOUNT_COLLATERAL = to_wei(10)
AMOUNT_TO_MINT = to_wei(100)
STARTING_BALANCE = to_wei(10)


def fund(token: TokenLedger, wallet: str, amount: int, spender: str = ENGINE) -> None:
    """Mint `amount` of a collateral token to `wallet` and approve the engine."""
    token.mint(DEPLOYER, wallet, amount)
    token.approve(wallet, spender, token.allowance(wallet, spender) + amount)


def capture_state(engine: RiskEngine) -> Dict[str, Any]:
    """Everything a failed operation must leave untouched."""
    tokens = {t.symbol: t for t in engine.registry.tokens()}
    return {
        "accounts": engine.accounts.snapshot(),
        "events": engine.events,
        "stable_balances": {w: b for w, b in engine.stable_unit.balances.items() if b},
        "stable_allowances": dict(engine.stable_unit.allowances),
        "stable_supply": engine.stable_unit.total_supply(),
        "stable_log": len(engine.stable_unit.transfer_log),
        "token_balances": {
            s: {w: b for w, b in t.balances.items() if b} for s, t in tokens.items()
        },
        "token_allowances": {s: dict(t.allowances) for s, t in tokens.items()},
    }


def build_engine(
    feed=None, weth=None, wbtc=None, susd=None,
) -> Tuple[RiskEngine, StaticPriceFeed, TokenLedger, TokenLedger, StableUnit]:
    """Create a WETH/WBTC engine, using fresh collaborators where none are given."""
    feed = feed or StaticPriceFeed({"WETH": WETH_PRICE, "WBTC": WBTC_PRICE})
    weth = weth or TokenLedger("WETH", "Wrapped Ether", owner=DEPLOYER, verbose=False)
    wbtc = wbtc or TokenLedger("WBTC", "Wrapped Bitcoin", owner=DEPLOYER, verbose=False)
    susd = susd or StableUnit(owner=ENGINE, verbose=False)
    engine = RiskEngine(
        ["WETH", "WBTC"], [feed, feed], [weth, wbtc], susd,
        address=ENGINE, verbose=False,
    )
    return engine, feed, weth, wbtc, susd
