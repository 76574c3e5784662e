"""
accounts.py - Per-account collateral and debt bookkeeping

The AccountLedger is a plain owned store: collateral balances keyed by
(account, asset) and one outstanding-debt balance per account. Entries are
created implicitly (zero-initialized) and never destroyed; a fully repaid and
withdrawn account simply reads as zeros.

The store performs no valuation and no health checks. It only guarantees that
balances never go negative: debits larger than the recorded balance raise
InsufficientBalance instead of wrapping.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Mapping, Set, Tuple

from .core import (
    CollateralMap,
    InsufficientBalance,
    require_positive,
)


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """Read-only view of one account: collateral per asset and debt."""
    account: str
    collateral: Mapping[str, int]
    debt: int

    def is_empty(self) -> bool:
        return self.debt == 0 and not any(self.collateral.values())


class AccountLedger:
    """
    Collateral and debt balances for every account.

    Supports snapshot() / restore() so that a failed engine operation can put
    the store back exactly as it was.

    Example:
        accounts = AccountLedger()
        accounts.credit_collateral("alice", "WETH", 10 * 10**18)
        accounts.increase_debt("alice", 100 * 10**18)
        accounts.get_collateral("alice", "WETH")  # 10000000000000000000
    """

    def __init__(self):
        self._collateral: Dict[str, Dict[str, int]] = defaultdict(dict)
        self._debt: Dict[str, int] = {}

    # ========================================================================
    # READS
    # ========================================================================

    def get_collateral(self, account: str, asset: str) -> int:
        """Deposited quantity of `asset` held for `account` (0 if none)."""
        return self._collateral.get(account, {}).get(asset, 0)

    def get_collateral_map(self, account: str) -> CollateralMap:
        """Copy of every asset balance recorded for `account`."""
        return dict(self._collateral.get(account, {}))

    def get_debt(self, account: str) -> int:
        """Outstanding minted debt of `account` (0 if none)."""
        return self._debt.get(account, 0)

    def get_account(self, account: str) -> AccountSnapshot:
        return AccountSnapshot(
            account=account,
            collateral=self.get_collateral_map(account),
            debt=self.get_debt(account),
        )

    def list_accounts(self) -> Set[str]:
        """Every account that has ever held collateral or debt."""
        return set(self._collateral) | set(self._debt)

    def total_debt(self) -> int:
        return sum(self._debt[a] for a in sorted(self._debt))

    def total_collateral(self, asset: str) -> int:
        """Total quantity of `asset` held in custody across all accounts."""
        return sum(
            self._collateral[a].get(asset, 0) for a in sorted(self._collateral)
        )

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def credit_collateral(self, account: str, asset: str, amount: int) -> int:
        """Add collateral; returns the new balance."""
        require_positive(amount)
        balances = self._collateral[account]
        balances[asset] = balances.get(asset, 0) + amount
        return balances[asset]

    def debit_collateral(self, account: str, asset: str, amount: int) -> int:
        """
        Remove collateral; returns the new balance.

        Raises:
            InsufficientBalance: if `amount` exceeds the recorded balance.
        """
        require_positive(amount)
        current = self.get_collateral(account, asset)
        if amount > current:
            raise InsufficientBalance(
                f"{account} has {current} {asset} deposited, cannot redeem {amount}",
                requested=amount,
                available=current,
            )
        self._collateral[account][asset] = current - amount
        return current - amount

    def increase_debt(self, account: str, amount: int) -> int:
        require_positive(amount)
        self._debt[account] = self.get_debt(account) + amount
        return self._debt[account]

    def decrease_debt(self, account: str, amount: int) -> int:
        """
        Reduce debt; returns the new balance.

        Raises:
            InsufficientBalance: if `amount` exceeds the outstanding debt.
        """
        require_positive(amount)
        current = self.get_debt(account)
        if amount > current:
            raise InsufficientBalance(
                f"{account} owes {current}, cannot burn {amount}",
                requested=amount,
                available=current,
            )
        self._debt[account] = current - amount
        return current - amount

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def snapshot(self) -> Tuple[Dict[str, Dict[str, int]], Dict[str, int]]:
        """Capture the full store. Balances are ints, so a two-level copy suffices."""
        collateral = {a: dict(b) for a, b in self._collateral.items()}
        return collateral, dict(self._debt)

    def restore(self, snapshot: Tuple[Dict[str, Dict[str, int]], Dict[str, int]]) -> None:
        collateral, debt = snapshot
        self._collateral = defaultdict(dict, {a: dict(b) for a, b in collateral.items()})
        self._debt = dict(debt)

    def clone(self) -> AccountLedger:
        """Independent copy for what-if analysis."""
        cloned = AccountLedger()
        cloned.restore(self.snapshot())
        return cloned

    def __repr__(self) -> str:
        return f"AccountLedger({len(self.list_accounts())} accounts, debt={self.total_debt()})"
