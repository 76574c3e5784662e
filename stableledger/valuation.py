"""
valuation.py - Pure fixed-point valuation and health-factor math

Every function here is pure: all inputs are explicit integers, there is no
ledger access and no hidden state. The RiskEngine loads balances and feed
answers, then delegates the arithmetic to these functions.

Key Formulas (all integers, working scale = 18 decimals):
    scaled_price      = price * 10**(18 - feed_decimals)
    usd_value         = amount * price // 10**feed_decimals
    token_amount      = usd_amount * 10**feed_decimals // price
    adjusted_value    = collateral_value * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    health_factor     = adjusted_value * PRECISION // total_debt
    liquidation_bonus = base_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION

Python integers are arbitrary precision, so multiply-then-divide sequences
never overflow. Every division floors, so conversions never over-credit.
"""

from __future__ import annotations
from typing import Mapping, Tuple

from .core import (
    WORKING_DECIMALS, PRECISION,
    LIQUIDATION_THRESHOLD, LIQUIDATION_PRECISION, LIQUIDATION_BONUS,
    FeedPrice,
    HealthFactorUndefined, PriceUnavailable,
    require_positive,
)


def _check_feed_answer(price: int, decimals: int) -> None:
    if price <= 0:
        raise PriceUnavailable(f"Feed answer must be positive, got {price}")
    if decimals < 0:
        raise ValueError(f"Feed decimals cannot be negative, got {decimals}")


def scale_price(price: int, decimals: int) -> int:
    """
    Rescale a raw feed answer to the working scale.

    Feeds with more than 18 decimals are floored to the working scale, which
    loses at most one unit in the last working-scale digit. The conversions
    below never use this rounded value: they divide by the feed precision
    only after multiplying.

    Raises:
        PriceUnavailable: if the answer is not strictly positive.
    """
    _check_feed_answer(price, decimals)
    if decimals <= WORKING_DECIMALS:
        return price * 10 ** (WORKING_DECIMALS - decimals)
    return price // 10 ** (decimals - WORKING_DECIMALS)


def calculate_usd_value(amount: int, price: int, decimals: int) -> int:
    """
    USD value (working scale) of `amount` base units at a raw feed price.

    Example:
        # 15 units at $2000 (8-decimal feed)
        calculate_usd_value(15 * 10**18, 2000 * 10**8, 8) == 30000 * 10**18
    """
    _check_feed_answer(price, decimals)
    return amount * price // 10 ** decimals


def calculate_token_amount_from_usd(usd_amount: int, price: int, decimals: int) -> int:
    """
    Quantity of an asset worth `usd_amount` at a raw feed price, rounded down.

    Example:
        # $100 of an asset priced at $2000
        calculate_token_amount_from_usd(100 * 10**18, 2000 * 10**8, 8) == 5 * 10**16
    """
    _check_feed_answer(price, decimals)
    return usd_amount * 10 ** decimals // price


def calculate_collateral_value(
    collateral: Mapping[str, int],
    prices: Mapping[str, FeedPrice],
) -> int:
    """
    Total USD value of a collateral map.

    Args:
        collateral: asset -> deposited quantity
        prices: asset -> (price, decimals)

    Raises:
        ValueError: if any asset with a non-zero balance has no price.
    """
    total = 0
    for asset, amount in collateral.items():
        if amount == 0:
            continue
        if asset not in prices:
            raise ValueError(f"Missing price for collateral asset '{asset}'")
        price, decimals = prices[asset]
        total += calculate_usd_value(amount, price, decimals)
    return total


def calculate_adjusted_collateral_value(collateral_value_usd: int) -> int:
    """Collateral value after the liquidation-threshold discount."""
    return collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION


def calculate_health_factor(total_debt: int, collateral_value_usd: int) -> int:
    """
    Health factor of a position at the working scale (1e18 == 1.0).

    Raises:
        HealthFactorUndefined: if total_debt is zero. Callers treat debt-free
            accounts as maximally healthy instead of evaluating this.
    """
    if total_debt == 0:
        raise HealthFactorUndefined("Health factor is undefined for zero debt")
    if total_debt < 0:
        raise ValueError(f"total_debt cannot be negative, got {total_debt}")
    return calculate_adjusted_collateral_value(collateral_value_usd) * PRECISION // total_debt


def calculate_liquidation_seizure(debt_to_cover: int, price: int, decimals: int) -> Tuple[int, int]:
    """
    Collateral a liquidator receives for repaying `debt_to_cover`.

    Returns:
        (base_amount, bonus_amount); the seizure is their sum.
    """
    require_positive(debt_to_cover)
    base = calculate_token_amount_from_usd(debt_to_cover, price, decimals)
    bonus = base * LIQUIDATION_BONUS // LIQUIDATION_PRECISION
    return base, bonus


def calculate_mintable_amount(total_debt: int, collateral_value_usd: int) -> int:
    """Additional debt an account can take on before its health factor breaks."""
    headroom = calculate_adjusted_collateral_value(collateral_value_usd) - total_debt
    return max(headroom, 0)
