"""
engine.py - Stateful collateral and debt risk engine

The RiskEngine is the only module that mutates protocol state. Users deposit
approved collateral, mint the stable unit against it, burn to repay, redeem
collateral, and liquidate positions whose health factor has fallen below the
minimum.

Key responsibilities:
    - Valuation of collateral at current feed prices (fresh read every time)
    - Health-factor enforcement after every self-initiated mutation
    - Atomic operations: a failed operation restores the account store, the
      event trail and every revertible collaborator to their prior state
    - Re-entrancy guard around every mutating entry point
    - Ordered, append-only audit trail of deposit and redemption events
"""

from __future__ import annotations
from contextlib import contextmanager
from functools import wraps
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from .accounts import AccountLedger, AccountSnapshot
from .core import (
    # Types
    AssetTransfer, PriceOracle, StableUnitLedger, Revertible,
    CollateralDeposited, CollateralRedeemed, EngineEvent,
    # Constants
    PRECISION, ADDITIONAL_FEED_PRECISION, ENGINE_WALLET,
    LIQUIDATION_THRESHOLD, LIQUIDATION_PRECISION, LIQUIDATION_BONUS,
    MIN_HEALTH_FACTOR, MAX_HEALTH_FACTOR,
    # Exceptions
    TransferFailed, MintFailed,
    HealthFactorBroken, HealthFactorOK, HealthFactorNotImproved,
    InsufficientBalance, InsufficientCollateralForLiquidation, ReentrantCall,
    # Helpers
    require_positive,
)
from .registry import CollateralRegistry
from .valuation import (
    calculate_usd_value,
    calculate_token_amount_from_usd,
    calculate_collateral_value,
    calculate_health_factor,
    calculate_liquidation_seizure,
    calculate_mintable_amount,
)


def _nonreentrant(method):
    """Run a public mutating method as one guarded, all-or-nothing operation."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._operation(method.__name__):
            return method(self, *args, **kwargs)

    return wrapper


class RiskEngine:
    """
    Over-collateralized stable-unit engine.

    Every public mutating method takes the acting principal explicitly as its
    first argument. The engine holds custody of deposited collateral and of
    stable units being burned under its own wallet id (`address`), which must
    be the owner of the stable unit.

    Thread Safety:
        Not thread-safe. Operations are serialized by the caller.

    Example:
        engine = RiskEngine(["WETH"], [feed], [weth], susd, verbose=False)
        weth.approve("alice", engine.address, 10 * 10**18)
        engine.deposit_and_mint("alice", "WETH", 10 * 10**18, 5000 * 10**18)
        engine.get_health_factor("alice")  # 2000000000000000000
    """

    def __init__(
        self,
        collateral_assets: Sequence[str],
        price_feeds: Sequence[PriceOracle],
        asset_tokens: Sequence[AssetTransfer],
        stable_unit: StableUnitLedger,
        address: str = ENGINE_WALLET,
        verbose: bool = True,
    ):
        """
        Create an engine over a fixed set of approved collateral assets.

        Args:
            collateral_assets: Approved assets, in enumeration order
            price_feeds: Price feed per asset (same length)
            asset_tokens: Transfer primitives per asset (same length)
            stable_unit: The stable-unit ledger the engine mints and burns
            address: Custody wallet id of the engine
            verbose: Print registration and operation outcomes (default: True)

        Raises:
            InvalidConfiguration: if the asset, feed and token lists disagree
        """
        if not address or not address.strip():
            raise ValueError("Engine address cannot be empty")
        self.registry = CollateralRegistry(collateral_assets, price_feeds, asset_tokens)
        self.accounts = AccountLedger()
        self.stable_unit = stable_unit
        self.address = address
        self.verbose = verbose
        self.event_log: List[EngineEvent] = []
        self._entered = False

        if self.verbose:
            for asset in self.registry:
                print(f"📝 Registered collateral: {asset} (feed={self.registry.price_feed(asset)!r})")

    @classmethod
    def from_pairs(
        cls,
        pairs: Sequence[Tuple[str, PriceOracle]],
        asset_tokens: Sequence[AssetTransfer],
        stable_unit: StableUnitLedger,
        **kwargs: Any,
    ) -> RiskEngine:
        """Create an engine from ordered (asset, price_feed) pairs."""
        return cls(
            [asset for asset, _ in pairs],
            [feed for _, feed in pairs],
            asset_tokens,
            stable_unit,
            **kwargs,
        )

    # ========================================================================
    # OPERATION SCOPE (guard + rollback)
    # ========================================================================

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """
        Guarded, all-or-nothing scope for one outermost mutating call.

        Nested entry raises ReentrantCall. Any exception restores the account
        store, truncates the event log and restores revertible collaborators.
        """
        if self._entered:
            raise ReentrantCall(f"{name}: re-entrant call rejected")
        self._entered = True
        checkpoint = self._checkpoint()
        try:
            yield
        except Exception as exc:
            self._rollback(checkpoint)
            if self.verbose:
                print(f"✗ REJECTED {name}: {type(exc).__name__}: {exc}")
            raise
        else:
            if self.verbose:
                print(f"✓ APPLIED {name}")
        finally:
            self._entered = False

    def _collaborators(self) -> List[Revertible]:
        seen = set()
        found = []
        for obj in [self.stable_unit, *self.registry.tokens()]:
            if id(obj) in seen or not isinstance(obj, Revertible):
                continue
            seen.add(id(obj))
            found.append(obj)
        return found

    def _checkpoint(self) -> Tuple[Any, int, List[Tuple[Revertible, Any]]]:
        return (
            self.accounts.snapshot(),
            len(self.event_log),
            [(c, c.snapshot()) for c in self._collaborators()],
        )

    def _rollback(self, checkpoint: Tuple[Any, int, List[Tuple[Revertible, Any]]]) -> None:
        accounts, log_length, collaborators = checkpoint
        self.accounts.restore(accounts)
        del self.event_log[log_length:]
        for collaborator, snapshot in collaborators:
            collaborator.restore(snapshot)

    # ========================================================================
    # PUBLIC OPERATIONS (Mutating)
    # ========================================================================

    @_nonreentrant
    def deposit(self, caller: str, asset: str, amount: int) -> None:
        """
        Deposit collateral into engine custody.

        Raises:
            NonPositiveAmount: if amount <= 0
            UnapprovedAsset: if asset is not in the registry
            TransferFailed: if the asset cannot be pulled from the caller
        """
        self._deposit(caller, asset, amount)

    @_nonreentrant
    def mint(self, caller: str, amount: int) -> None:
        """
        Mint stable units against the caller's collateral.

        Raises:
            NonPositiveAmount: if amount <= 0
            HealthFactorBroken: if the new debt breaks the caller's health factor
            MintFailed: if the stable-unit ledger reports failure
        """
        self._mint(caller, amount)

    @_nonreentrant
    def deposit_and_mint(self, caller: str, asset: str, collateral_amount: int, mint_amount: int) -> None:
        """Deposit collateral and mint stable units in one operation."""
        self._deposit(caller, asset, collateral_amount)
        self._mint(caller, mint_amount)

    @_nonreentrant
    def burn(self, caller: str, amount: int) -> None:
        """
        Repay the caller's own debt with stable units it holds.

        Raises:
            NonPositiveAmount: if amount <= 0
            InsufficientBalance: if amount exceeds the caller's debt
            TransferFailed: if the stable units cannot be pulled from the caller
        """
        self._burn(amount, on_behalf_of=caller, payer=caller)
        self._revert_if_health_factor_is_broken(caller)

    @_nonreentrant
    def redeem(self, caller: str, asset: str, amount: int) -> None:
        """
        Withdraw collateral back to the caller.

        The health factor is checked after the asset has left custody; a
        failure still restores everything, including the transfer.

        Raises:
            InsufficientBalance: if amount exceeds the caller's deposit
            HealthFactorBroken: if the withdrawal leaves the caller under-margined
        """
        self._redeem(asset, amount, redeemed_from=caller, redeemed_to=caller)
        self._revert_if_health_factor_is_broken(caller)

    @_nonreentrant
    def redeem_for_stable_unit(self, caller: str, asset: str, collateral_amount: int, burn_amount: int) -> None:
        """Burn stable units, then redeem collateral, in one operation."""
        self._burn(burn_amount, on_behalf_of=caller, payer=caller)
        self._revert_if_health_factor_is_broken(caller)
        self._redeem(asset, collateral_amount, redeemed_from=caller, redeemed_to=caller)
        self._revert_if_health_factor_is_broken(caller)

    @_nonreentrant
    def liquidate(self, liquidator: str, asset: str, target: str, debt_to_cover: int) -> Tuple[int, int]:
        """
        Repay part of an unhealthy account's debt for a bonus share of its collateral.

        The liquidator supplies `debt_to_cover` stable units and receives the
        equivalent amount of `asset` plus LIQUIDATION_BONUS percent.

        Returns:
            (base_amount, bonus_amount) of `asset` transferred to the liquidator

        Raises:
            HealthFactorOK: if the target is not below MIN_HEALTH_FACTOR
            InsufficientCollateralForLiquidation: if the target's deposit of
                `asset` cannot fund the seizure
            HealthFactorNotImproved: if the target's health factor does not
                strictly improve
            HealthFactorBroken: if the liquidator ends up under-margined
        """
        require_positive(debt_to_cover)
        self.registry.require(asset)

        starting = self.get_health_factor(target)
        if starting >= MIN_HEALTH_FACTOR:
            raise HealthFactorOK(target, starting)

        price, decimals = self.registry.latest_price(asset)
        base, bonus = calculate_liquidation_seizure(debt_to_cover, price, decimals)
        seized = base + bonus
        available = self.accounts.get_collateral(target, asset)
        if seized > available:
            raise InsufficientCollateralForLiquidation(
                f"{target} holds {available} {asset}, liquidation needs {seized}",
                requested=seized,
                available=available,
            )

        self._redeem(asset, seized, redeemed_from=target, redeemed_to=liquidator)
        self._burn(debt_to_cover, on_behalf_of=target, payer=liquidator)

        ending = self.get_health_factor(target)
        if ending <= starting:
            raise HealthFactorNotImproved(target, starting, ending)
        self._revert_if_health_factor_is_broken(liquidator)
        return base, bonus

    # ========================================================================
    # INTERNAL PRIMITIVES
    # ========================================================================

    def _deposit(self, caller: str, asset: str, amount: int) -> None:
        require_positive(amount)
        token = self.registry.token(asset)
        self.accounts.credit_collateral(caller, asset, amount)
        self._emit(CollateralDeposited(caller, asset, amount, len(self.event_log)))
        if not token.transfer_from(self.address, caller, self.address, amount):
            raise TransferFailed(f"Could not pull {amount} {asset} from {caller}")

    def _mint(self, caller: str, amount: int) -> None:
        require_positive(amount)
        self.accounts.increase_debt(caller, amount)
        self._revert_if_health_factor_is_broken(caller)
        if not self.stable_unit.mint(self.address, caller, amount):
            raise MintFailed(f"Stable unit refused to mint {amount} to {caller}")

    def _burn(self, amount: int, on_behalf_of: str, payer: str) -> None:
        """Reduce `on_behalf_of`'s debt using stable units pulled from `payer`."""
        require_positive(amount)
        debt = self.accounts.get_debt(on_behalf_of)
        if amount > debt:
            raise InsufficientBalance(
                f"{on_behalf_of} owes {debt}, cannot burn {amount}",
                requested=amount,
                available=debt,
            )
        self.accounts.decrease_debt(on_behalf_of, amount)
        if not self.stable_unit.transfer_from(self.address, payer, self.address, amount):
            raise TransferFailed(f"Could not pull {amount} stable units from {payer}")
        self.stable_unit.burn(self.address, amount)

    def _redeem(self, asset: str, amount: int, redeemed_from: str, redeemed_to: str) -> None:
        """Move `amount` of `asset` out of `redeemed_from`'s deposit to `redeemed_to`."""
        require_positive(amount)
        token = self.registry.token(asset)
        self.accounts.debit_collateral(redeemed_from, asset, amount)
        self._emit(CollateralRedeemed(redeemed_from, redeemed_to, asset, amount, len(self.event_log)))
        if not token.transfer(self.address, redeemed_to, amount):
            raise TransferFailed(f"Could not send {amount} {asset} to {redeemed_to}")

    def _revert_if_health_factor_is_broken(self, account: str) -> None:
        # Debt-free accounts are exempt from the check.
        debt = self.accounts.get_debt(account)
        if debt == 0:
            return
        health_factor = calculate_health_factor(debt, self.get_account_collateral_value(account))
        if health_factor < MIN_HEALTH_FACTOR:
            raise HealthFactorBroken(account, health_factor)

    def _emit(self, event: EngineEvent) -> None:
        self.event_log.append(event)

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def get_usd_value(self, asset: str, amount: int) -> int:
        """USD value (working scale) of `amount` of an approved asset."""
        price, decimals = self.registry.latest_price(asset)
        return calculate_usd_value(amount, price, decimals)

    def get_token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        """Quantity of `asset` worth `usd_amount` at the current price, rounded down."""
        price, decimals = self.registry.latest_price(asset)
        return calculate_token_amount_from_usd(usd_amount, price, decimals)

    def get_account_collateral_value(self, account: str) -> int:
        """Total USD value of the account's deposits across every approved asset."""
        return self._value_collateral(
            {asset: self.accounts.get_collateral(account, asset) for asset in self.registry})

    def get_account_information(self, account: str) -> Tuple[int, int]:
        """Return (debt, collateral_value_usd) for the account."""
        return self.accounts.get_debt(account), self.get_account_collateral_value(account)

    def get_account(self, account: str) -> AccountSnapshot:
        return self.accounts.get_account(account)

    def get_health_factor(self, account: str) -> int:
        """Health factor of the account; MAX_HEALTH_FACTOR when it has no debt."""
        debt, value = self.get_account_information(account)
        return self.calculate_health_factor(debt, value)

    def calculate_health_factor(self, total_debt: int, collateral_value_usd: int) -> int:
        if total_debt == 0:
            return MAX_HEALTH_FACTOR
        return calculate_health_factor(total_debt, collateral_value_usd)

    def get_mintable_amount(self, account: str) -> int:
        """Largest additional mint the account can make right now."""
        debt, value = self.get_account_information(account)
        return calculate_mintable_amount(debt, value)

    def is_liquidatable(self, account: str) -> bool:
        return self.get_health_factor(account) < MIN_HEALTH_FACTOR

    def get_collateral_balance_of_user(self, account: str, asset: str) -> int:
        return self.accounts.get_collateral(account, asset)

    def get_collateral_tokens(self) -> Tuple[str, ...]:
        return self.registry.assets

    def get_collateral_token_price_feed(self, asset: str) -> PriceOracle:
        return self.registry.price_feed(asset)

    def get_stable_unit(self) -> StableUnitLedger:
        return self.stable_unit

    @property
    def events(self) -> Tuple[EngineEvent, ...]:
        """Ordered audit trail of every committed deposit and redemption."""
        return tuple(self.event_log)

    def get_events(self, kind: Optional[Type[EngineEvent]] = None) -> List[EngineEvent]:
        if kind is None:
            return list(self.event_log)
        return [e for e in self.event_log if isinstance(e, kind)]

    # ========================================================================
    # PROTOCOL METRICS
    # ========================================================================

    def get_total_debt(self) -> int:
        return self.accounts.total_debt()

    def get_total_collateral_value(self) -> int:
        """USD value of everything held in custody."""
        return self._value_collateral(
            {asset: self.accounts.total_collateral(asset) for asset in self.registry})

    def _value_collateral(self, collateral: Dict[str, int]) -> int:
        # Assets with no balance are not priced
        prices = {asset: self.registry.latest_price(asset)
                  for asset, amount in collateral.items() if amount}
        return calculate_collateral_value(collateral, prices)

    def get_protocol_collateralization(self) -> Optional[int]:
        """
        Raw collateral value over outstanding debt, at the working scale.

        At or below PRECISION (100%) the liquidation bonus can no longer be
        funded and unhealthy positions may not be rescued. Returns None when
        there is no outstanding debt.
        """
        debt = self.get_total_debt()
        if debt == 0:
            return None
        return self.get_total_collateral_value() * PRECISION // debt

    # ========================================================================
    # PROTOCOL CONSTANTS
    # ========================================================================

    @staticmethod
    def get_precision() -> int:
        return PRECISION

    @staticmethod
    def get_additional_feed_precision() -> int:
        return ADDITIONAL_FEED_PRECISION

    @staticmethod
    def get_liquidation_threshold() -> int:
        return LIQUIDATION_THRESHOLD

    @staticmethod
    def get_liquidation_bonus() -> int:
        return LIQUIDATION_BONUS

    @staticmethod
    def get_liquidation_precision() -> int:
        return LIQUIDATION_PRECISION

    @staticmethod
    def get_min_health_factor() -> int:
        return MIN_HEALTH_FACTOR

    def __repr__(self) -> str:
        return (
            f"RiskEngine({self.address}, assets={list(self.registry.assets)}, "
            f"debt={self.get_total_debt()})"
        )
