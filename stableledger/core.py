"""
Core types and constants for the synthetic-dollar ledger.

This module provides the foundational pieces every other module builds on:
1. Protocol constants: working scale, liquidation threshold/bonus, health factor floor
2. Exceptions: LedgerError and the domain-specific error taxonomy
3. Immutable records: audit events and price rounds
4. Protocols: the collaborator interfaces the RiskEngine calls
5. Fixed-point helpers: conversion between Decimal amounts and integer base units

All monetary quantities inside the engine are Python integers at one working
scale (18 decimal places). Decimal only appears at the human boundary.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Any, Dict, Tuple, Union, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Working scale for every amount, price and USD value in the engine.
WORKING_DECIMALS = 18
PRECISION = 10 ** WORKING_DECIMALS

# Price feeds conventionally answer with 8 decimals; this factor lifts such an
# answer to the working scale.
DEFAULT_FEED_DECIMALS = 8
ADDITIONAL_FEED_PRECISION = 10 ** (WORKING_DECIMALS - DEFAULT_FEED_DECIMALS)

# Only LIQUIDATION_THRESHOLD / LIQUIDATION_PRECISION of collateral value counts
# toward the health factor (50% => 200% over-collateralization).
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100

# Extra collateral paid to a liquidator, as a fraction of LIQUIDATION_PRECISION.
LIQUIDATION_BONUS = 10

MIN_HEALTH_FACTOR = PRECISION

# Reported for accounts without debt.
MAX_HEALTH_FACTOR = 2 ** 256 - 1

# Price rounds older than this are rejected by CheckedPriceFeed.
ORACLE_TIMEOUT = timedelta(hours=3)

# Reserved wallet used as the counterparty of token issuance and destruction.
SYSTEM_WALLET = "system"

# Default custody address of the engine.
ENGINE_WALLET = "engine"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Opaque identifier of a collateral asset (e.g. "WETH").
Asset = str

# Principal identity of an account or wallet.
Account = str

# Mapping from asset to deposited quantity for a single account.
CollateralMap = Dict[str, int]

# Raw feed answer and the number of decimals it is expressed in.
FeedPrice = Tuple[int, int]

AmountLike = Union[int, float, str, Decimal]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InvalidConfiguration(LedgerError):
    """Raised when the engine or registry is constructed from inconsistent inputs."""
    pass


class UnapprovedAsset(LedgerError):
    """Raised when an operation names an asset outside the collateral registry."""

    def __init__(self, asset: str):
        self.asset = asset
        super().__init__(f"Asset {asset!r} is not an approved collateral")


# Name used by the deposit flow.
NotAllowedAsset = UnapprovedAsset


class NonPositiveAmount(LedgerError):
    """Raised when an amount that must be strictly positive is zero or negative."""

    def __init__(self, amount: Any):
        self.amount = amount
        super().__init__(f"Amount must be greater than zero, got {amount}")


class TransferFailed(LedgerError):
    """Raised when an asset or stable-unit transfer reports failure."""
    pass


class MintFailed(LedgerError):
    """Raised when the stable-unit ledger refuses to mint."""
    pass


class HealthFactorBroken(LedgerError):
    """Raised when an operation would leave an account under-margined."""

    def __init__(self, account: str, health_factor: int):
        self.account = account
        self.health_factor = health_factor
        super().__init__(
            f"Health factor of {account} would be {health_factor}, "
            f"below minimum {MIN_HEALTH_FACTOR}"
        )


class HealthFactorOK(LedgerError):
    """Raised when liquidation is attempted on a healthy account."""

    def __init__(self, account: str, health_factor: int):
        self.account = account
        self.health_factor = health_factor
        super().__init__(f"Health factor of {account} is {health_factor}; not liquidatable")


class HealthFactorNotImproved(LedgerError):
    """Raised when a liquidation fails to improve the target's health factor."""

    def __init__(self, account: str, starting: int, ending: int):
        self.account = account
        self.starting_health_factor = starting
        self.ending_health_factor = ending
        super().__init__(
            f"Liquidation of {account} did not improve health factor "
            f"({starting} -> {ending})"
        )


class HealthFactorUndefined(LedgerError):
    """Raised when a health factor is computed for an account without debt."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when a redeem, burn or repayment exceeds the recorded balance."""

    def __init__(self, message: str, requested: int = 0, available: int = 0):
        self.requested = requested
        self.available = available
        super().__init__(message)


class InsufficientCollateralForLiquidation(InsufficientBalance):
    """
    Raised when a target cannot fund the bonus-inflated seizure.

    This is the observable form of the known systemic limitation: once a
    position is at or below 100% collateralization there is no bonus margin
    left to pay a liquidator.
    """
    pass


class ReentrantCall(LedgerError):
    """Raised when a mutating entry point is invoked while another is in progress."""
    pass


class Unauthorized(LedgerError):
    """Raised when a caller without the owner capability mints or burns."""
    pass


class PriceUnavailable(LedgerError):
    """Raised when no usable price exists for an asset."""
    pass


class StalePrice(PriceUnavailable):
    """Raised when the latest price round is older than the allowed timeout."""
    pass


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class CollateralDeposited:
    """Audit record: `amount` of `asset` credited to `account`."""
    account: str
    asset: str
    amount: int
    sequence_number: int = 0


@dataclass(frozen=True, slots=True)
class CollateralRedeemed:
    """
    Audit record: `amount` of `asset` debited from `redeemed_from` and sent to
    `redeemed_to`. The two differ when the redemption is a liquidation seizure.
    """
    redeemed_from: str
    redeemed_to: str
    asset: str
    amount: int
    sequence_number: int = 0


EngineEvent = Union[CollateralDeposited, CollateralRedeemed]


@dataclass(frozen=True, slots=True)
class PriceRound:
    """
    One observation of a price feed.

    Attributes:
        answer: Raw integer price, expressed with `decimals` decimal places.
        decimals: Precision of `answer`.
        updated_at: When the observation was made.
        round_id: Monotonic round counter within the feed.
    """
    answer: int
    decimals: int
    updated_at: datetime
    round_id: int = 0

    def __post_init__(self):
        if not isinstance(self.answer, int) or isinstance(self.answer, bool):
            raise ValueError(f"PriceRound answer must be int, got {type(self.answer)}")
        if self.decimals < 0:
            raise ValueError(f"PriceRound decimals cannot be negative, got {self.decimals}")


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class PriceOracle(Protocol):
    """
    Source of the latest USD price of an asset.

    Freshness is the oracle's responsibility; the engine reads it on every
    valuation and treats any exception as an abort of the enclosing operation.
    """

    def latest_price(self, asset: str) -> FeedPrice:
        """Return (price, decimals) for the asset."""
        ...


@runtime_checkable
class AssetTransfer(Protocol):
    """Transfer primitives of a collateral asset. Failures are reported as False."""

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        ...


@runtime_checkable
class StableUnitLedger(Protocol):
    """
    The pegged stable unit. Mint and burn are owner-gated by the ledger itself;
    the engine only interprets the results.
    """

    def mint(self, caller: str, to: str, amount: int) -> bool:
        ...

    def burn(self, caller: str, amount: int) -> None:
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        ...


@runtime_checkable
class Revertible(Protocol):
    """
    A collaborator whose state can be captured and restored.

    The engine snapshots every revertible collaborator at the start of a
    mutating operation and restores them if the operation fails.
    """

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


# ============================================================================
# FIXED-POINT HELPERS
# ============================================================================

def to_wei(amount: AmountLike, decimals: int = WORKING_DECIMALS) -> int:
    """
    Convert a human-readable amount to integer base units, rounding down.

    Example:
        to_wei("0.05") == 50_000_000_000_000_000
        to_wei(2000, 8) == 200_000_000_000
    """
    if isinstance(amount, bool):
        raise ValueError("amount cannot be a bool")
    if isinstance(amount, int):
        return amount * 10 ** decimals
    if isinstance(amount, float):
        amount = Decimal(str(amount))
    elif isinstance(amount, str):
        amount = Decimal(amount)
    if amount.is_nan() or amount.is_infinite():
        raise ValueError(f"amount must be finite, got {amount}")
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amount.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_wei(amount: int, decimals: int = WORKING_DECIMALS) -> Decimal:
    """Convert integer base units to an exact Decimal amount."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(amount).scaleb(-decimals)


def require_positive(amount: int) -> None:
    """Raise NonPositiveAmount unless `amount` is strictly positive."""
    if amount <= 0:
        raise NonPositiveAmount(amount)
