#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Stable Ledger Step by Step

This is a pedagogical walk through an over-collateralized stable unit.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Foundation   - Collateral tokens, price feeds, the engine
  4-5: Borrowing    - Deposit, mint, the health factor and its limit
  6-7: Stress       - Atomic rejection, a price crash
  8:   Liquidation  - Repaying bad debt for a bonus
  9:   Solvency     - Supply, debt and custody still agree

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from stableledger import (
    RiskEngine, StableUnit, TokenLedger, StaticPriceFeed,
    HealthFactorBroken,
    MAX_HEALTH_FACTOR,
    to_wei, from_wei,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    weth_price: str = "2000"
    wbtc_price: str = "1000"
    crash_price: str = "18"

    alice_collateral: str = "10"
    alice_mint: str = "100"

    liquidator_collateral: str = "20"
    liquidator_mint: str = "100"


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv

ENGINE = "engine"
DEPLOYER = "deployer"


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def fmt_hf(health_factor: int) -> str:
    if health_factor == MAX_HEALTH_FACTOR:
        return "MAX (no debt)"
    return f"{from_wei(health_factor):.4f}"


def show_account(engine: RiskEngine, account: str):
    debt, value = engine.get_account_information(account)
    print(f"{account:<12} debt=${from_wei(debt):>10,.2f}  "
          f"collateral=${from_wei(value):>12,.2f}  "
          f"health={fmt_hf(engine.get_health_factor(account))}")


# ============================================================================
# PHASE 1: FOUNDATION
# ============================================================================

def step_01_tokens():
    step_header(1, "Collateral Tokens",
        "Collateral is an ordinary token that users approve the engine to pull.")

    print("""
    Every amount is an integer in base units with 18 decimals:
    1 WETH == 10**18 base units. Issuance is owner-gated and every mint or
    burn is logged against the SYSTEM wallet.
    """)
    wait_for_enter()

    weth = TokenLedger("WETH", "Wrapped Ether", owner=DEPLOYER)
    wbtc = TokenLedger("WBTC", "Wrapped Bitcoin", owner=DEPLOYER)

    print('>>> weth.mint("deployer", "alice", to_wei(10))')
    weth.mint(DEPLOYER, "alice", to_wei(CONFIG.alice_collateral))
    weth.mint(DEPLOYER, "liquidator", to_wei(CONFIG.liquidator_collateral))

    section_header("Balances")
    for wallet in ("alice", "liquidator"):
        print(f"{wallet:<12} {from_wei(weth.balance_of(wallet))} WETH")
    print(f"Supply check: {weth.verify_supply()}")
    return weth, wbtc


def step_02_feeds():
    step_header(2, "Price Feeds",
        "Feeds answer with a raw integer and its precision, here 8 decimals.")

    feed = StaticPriceFeed({
        "WETH": to_wei(CONFIG.weth_price, 8),
        "WBTC": to_wei(CONFIG.wbtc_price, 8),
    })
    print(f">>> feed.latest_price('WETH') -> {feed.latest_price('WETH')}")
    print("""
    The engine multiplies by the raw answer and only then divides by the
    feed precision, so feeds of any precision value collateral identically.
    """)
    return feed


def step_03_engine(feed, weth, wbtc):
    step_header(3, "The Risk Engine",
        "The engine owns the stable unit and custody of all collateral.")

    susd = StableUnit(owner=ENGINE)
    print('>>> engine = RiskEngine(["WETH", "WBTC"], [feed, feed], [weth, wbtc], susd)')
    engine = RiskEngine(["WETH", "WBTC"], [feed, feed], [weth, wbtc], susd, address=ENGINE)

    section_header("Protocol Constants")
    print(f"Liquidation threshold: {engine.get_liquidation_threshold()}%")
    print(f"Liquidation bonus:     {engine.get_liquidation_bonus()}%")
    print(f"Min health factor:     {fmt_hf(engine.get_min_health_factor())}")
    return engine, susd


# ============================================================================
# PHASE 2: BORROWING
# ============================================================================

def step_04_deposit_and_mint(engine: RiskEngine, weth: TokenLedger, susd: StableUnit):
    step_header(4, "Deposit and Mint",
        "Lock collateral, then mint stable units against it.")

    for account, collateral, mint in (
        ("alice", CONFIG.alice_collateral, CONFIG.alice_mint),
        ("liquidator", CONFIG.liquidator_collateral, CONFIG.liquidator_mint),
    ):
        weth.approve(account, ENGINE, to_wei(collateral))
        print(f'>>> engine.deposit_and_mint("{account}", "WETH", to_wei({collateral}), to_wei({mint}))')
        engine.deposit_and_mint(account, "WETH", to_wei(collateral), to_wei(mint))

    section_header("Accounts")
    show_account(engine, "alice")
    show_account(engine, "liquidator")
    print(f"\nSUSD supply: {from_wei(susd.total_supply())}")


def step_05_health_factor(engine: RiskEngine):
    step_header(5, "The Health Factor",
        "Only half of collateral value counts; debt may not exceed it.")

    print("""
    health = (collateral_value * 50 / 100) / debt

    Alice may mint until her health factor reaches exactly 1.0.
    """)
    print(f"Alice can still mint: ${from_wei(engine.get_mintable_amount('alice')):,.2f}")


# ============================================================================
# PHASE 3: STRESS
# ============================================================================

def step_06_rejection(engine: RiskEngine):
    step_header(6, "Atomic Rejection",
        "An operation that would break the health factor leaves no trace.")

    too_much = engine.get_mintable_amount("alice") + 1
    before = engine.get_account("alice")
    try:
        engine.mint("alice", too_much)
    except HealthFactorBroken as exc:
        print(f"Rejected: health factor would be {fmt_hf(exc.health_factor)}")
    print(f"Account unchanged: {engine.get_account('alice') == before}")


def step_07_crash(engine: RiskEngine, feed: StaticPriceFeed):
    step_header(7, "Price Crash",
        f"WETH falls from ${CONFIG.weth_price} to ${CONFIG.crash_price}.")

    feed.update_answer("WETH", to_wei(CONFIG.crash_price, 8))
    show_account(engine, "alice")
    show_account(engine, "liquidator")
    print(f"\nAlice liquidatable: {engine.is_liquidatable('alice')}")


# ============================================================================
# PHASE 4: LIQUIDATION AND SOLVENCY
# ============================================================================

def step_08_liquidate(engine: RiskEngine, weth: TokenLedger, susd: StableUnit):
    step_header(8, "Liquidation",
        "A third party repays Alice's debt and seizes collateral plus 10%.")

    cover = to_wei(CONFIG.alice_mint)
    susd.approve("liquidator", ENGINE, cover)
    print('>>> engine.liquidate("liquidator", "WETH", "alice", to_wei(100))')
    base, bonus = engine.liquidate("liquidator", "WETH", "alice", cover)

    section_header("Seizure")
    print(f"Base:  {from_wei(base)} WETH")
    print(f"Bonus: {from_wei(bonus)} WETH")
    print(f"Liquidator wallet now holds {from_wei(weth.balance_of('liquidator'))} WETH")

    section_header("Accounts")
    show_account(engine, "alice")
    show_account(engine, "liquidator")


def step_09_solvency(engine: RiskEngine, weth: TokenLedger, susd: StableUnit):
    step_header(9, "Solvency Check",
        "Stable supply equals debt, and custody equals recorded collateral.")

    print(f"SUSD supply:          {from_wei(susd.total_supply())}")
    print(f"Total debt:           {from_wei(engine.get_total_debt())}")
    print(f"WETH in custody:      {from_wei(weth.balance_of(ENGINE))}")
    print(f"WETH recorded:        {from_wei(engine.accounts.total_collateral('WETH'))}")
    ratio = engine.get_protocol_collateralization()
    print(f"Collateralization:    {fmt_hf(ratio) if ratio is not None else 'n/a'}x")

    section_header("Audit Trail")
    for event in engine.events:
        print(f"  {event}")


def main():
    print("=" * 70)
    print("       STABLE LEDGER TUTORIAL")
    print("=" * 70)

    weth, wbtc = step_01_tokens()
    wait_for_enter()

    feed = step_02_feeds()
    wait_for_enter()

    engine, susd = step_03_engine(feed, weth, wbtc)
    wait_for_enter()

    step_04_deposit_and_mint(engine, weth, susd)
    wait_for_enter()

    step_05_health_factor(engine)
    wait_for_enter()

    step_06_rejection(engine)
    wait_for_enter()

    step_07_crash(engine, feed)
    wait_for_enter()

    step_08_liquidate(engine, weth, susd)
    wait_for_enter()

    step_09_solvency(engine, weth, susd)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - Collateral is pulled into engine custody on deposit
      - Minting is limited by a 50% liquidation threshold
      - Failed operations roll back completely
      - Anyone may liquidate an account below health factor 1.0

    Next steps:
      - See stableledger/engine.py for the operations
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
