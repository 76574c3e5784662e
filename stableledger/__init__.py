"""
stableledger - Over-collateralized Synthetic-Dollar Ledger

Users deposit approved collateral, mint a USD-pegged stable unit against it,
and any third party may liquidate positions whose health factor falls below
the minimum.

Usage:
    from stableledger import RiskEngine, StableUnit, TokenLedger, StaticPriceFeed, to_wei

    feed = StaticPriceFeed({"WETH": to_wei(2000, 8)})
    weth = TokenLedger("WETH", "Wrapped Ether", owner="deployer")
    susd = StableUnit(owner="engine")
    engine = RiskEngine(["WETH"], [feed], [weth], susd)

    weth.mint("deployer", "alice", to_wei(10))
    weth.approve("alice", engine.address, to_wei(10))
    engine.deposit_and_mint("alice", "WETH", to_wei(10), to_wei(5000))
"""

# Core types
from .core import (
    PriceOracle,
    AssetTransfer,
    StableUnitLedger,
    Revertible,
    CollateralDeposited,
    CollateralRedeemed,
    PriceRound,
    LedgerError,
    InvalidConfiguration,
    UnapprovedAsset,
    NotAllowedAsset,
    NonPositiveAmount,
    TransferFailed,
    MintFailed,
    HealthFactorBroken,
    HealthFactorOK,
    HealthFactorNotImproved,
    HealthFactorUndefined,
    InsufficientBalance,
    InsufficientCollateralForLiquidation,
    ReentrantCall,
    Unauthorized,
    PriceUnavailable,
    StalePrice,
    to_wei,
    from_wei,
    require_positive,
    WORKING_DECIMALS,
    PRECISION,
    DEFAULT_FEED_DECIMALS,
    ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_THRESHOLD,
    LIQUIDATION_PRECISION,
    LIQUIDATION_BONUS,
    MIN_HEALTH_FACTOR,
    MAX_HEALTH_FACTOR,
    ORACLE_TIMEOUT,
    SYSTEM_WALLET,
    ENGINE_WALLET,
)

# Valuation
from .valuation import (
    scale_price,
    calculate_usd_value,
    calculate_token_amount_from_usd,
    calculate_collateral_value,
    calculate_adjusted_collateral_value,
    calculate_health_factor,
    calculate_liquidation_seizure,
    calculate_mintable_amount,
)

# Stores
from .registry import CollateralRegistry
from .accounts import AccountLedger, AccountSnapshot

# Collaborators
from .token import TokenLedger, StableUnit, TokenTransfer
from .pricing_source import (
    StaticPriceFeed,
    TimeSeriesPriceFeed,
    CheckedPriceFeed,
)

# Engine
from .engine import RiskEngine

__all__ = [
    # Core
    'PriceOracle', 'AssetTransfer', 'StableUnitLedger', 'Revertible',
    'CollateralDeposited', 'CollateralRedeemed', 'PriceRound',
    'LedgerError', 'InvalidConfiguration', 'UnapprovedAsset', 'NotAllowedAsset',
    'NonPositiveAmount', 'TransferFailed', 'MintFailed',
    'HealthFactorBroken', 'HealthFactorOK', 'HealthFactorNotImproved',
    'HealthFactorUndefined', 'InsufficientBalance',
    'InsufficientCollateralForLiquidation', 'ReentrantCall', 'Unauthorized',
    'PriceUnavailable', 'StalePrice',
    'to_wei', 'from_wei', 'require_positive',
    'WORKING_DECIMALS', 'PRECISION', 'DEFAULT_FEED_DECIMALS', 'ADDITIONAL_FEED_PRECISION',
    'LIQUIDATION_THRESHOLD', 'LIQUIDATION_PRECISION', 'LIQUIDATION_BONUS',
    'MIN_HEALTH_FACTOR', 'MAX_HEALTH_FACTOR', 'ORACLE_TIMEOUT',
    'SYSTEM_WALLET', 'ENGINE_WALLET',
    # Valuation
    'scale_price', 'calculate_usd_value', 'calculate_token_amount_from_usd',
    'calculate_collateral_value', 'calculate_adjusted_collateral_value',
    'calculate_health_factor', 'calculate_liquidation_seizure', 'calculate_mintable_amount',
    # Stores
    'CollateralRegistry', 'AccountLedger', 'AccountSnapshot',
    # Collaborators
    'TokenLedger', 'StableUnit', 'TokenTransfer',
    'StaticPriceFeed', 'TimeSeriesPriceFeed', 'CheckedPriceFeed',
    # Engine
    'RiskEngine',
]

__version__ = '1.0.0'
