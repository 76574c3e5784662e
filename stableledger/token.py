"""
token.py - Fungible-balance token ledgers

TokenLedger is a single-unit balance ledger used for collateral assets, and
StableUnit is the pegged stable unit the RiskEngine mints and burns.

Key responsibilities:
    - Balances per wallet, allowances per (owner, spender)
    - Owner-gated issuance; every issuance and destruction is logged as a
      transfer to or from SYSTEM_WALLET so the log always balances
    - Transfers report failure as False and leave state untouched
    - snapshot() / restore() so an enclosing engine operation can roll back
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple, Any

from .core import (
    SYSTEM_WALLET, WORKING_DECIMALS,
    InsufficientBalance, Unauthorized,
    require_positive,
)


@dataclass(frozen=True, slots=True)
class TokenTransfer:
    """
    One applied balance change.

    Issuance has source == SYSTEM_WALLET, destruction has dest == SYSTEM_WALLET.
    """
    amount: int
    source: str
    dest: str
    sequence_number: int

    def __repr__(self) -> str:
        return f"TokenTransfer({self.amount}: {self.source}→{self.dest})"


class TokenLedger:
    """
    Fungible-balance ledger for one token.

    Thread Safety:
        Not thread-safe. Each engine owns its collaborators.

    Example:
        weth = TokenLedger("WETH", "Wrapped Ether", owner="deployer", verbose=False)
        weth.mint("deployer", "alice", 10 * 10**18)
        weth.approve("alice", "engine", 10 * 10**18)
        weth.transfer_from("engine", "alice", "engine", 10 * 10**18)  # True
    """

    def __init__(
        self,
        symbol: str,
        name: str,
        owner: str,
        decimals: int = WORKING_DECIMALS,
        verbose: bool = True,
    ):
        """
        Create a token ledger.

        Args:
            symbol: Token symbol (e.g. "WETH")
            name: Human-readable name
            owner: Wallet holding the mint capability
            decimals: Display precision of base units
            verbose: Print rejected transfers and issuance (default: True)
        """
        if not symbol or not symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        if not owner or not owner.strip():
            raise ValueError("Token owner cannot be empty")
        self.symbol = symbol
        self.name = name
        self.decimals = decimals
        self.owner = owner
        self.verbose = verbose
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.transfer_log: List[TokenTransfer] = []
        self._minted = 0
        self._burned = 0

    # ========================================================================
    # READS
    # ========================================================================

    def balance_of(self, wallet: str) -> int:
        return self.balances.get(wallet, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        """Sum of balances, accumulated in sorted wallet order."""
        return sum(self.balances[w] for w in sorted(self.balances))

    def holders(self) -> Set[str]:
        """Wallets with a non-zero balance."""
        return {w for w, b in self.balances.items() if b != 0}

    def verify_supply(self) -> Dict[str, Any]:
        """
        Verify that balances account for every unit issued and destroyed.

        Returns:
            Dict with keys:
            - 'valid': bool - True if total supply == minted - burned
            - 'supply': int - current sum of balances
            - 'expected': int - minted - burned
        """
        supply = self.total_supply()
        expected = self._minted - self._burned
        return {
            'valid': supply == expected,
            'supply': supply,
            'expected': expected,
        }

    # ========================================================================
    # TRANSFERS
    # ========================================================================

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set the amount `spender` may move out of `owner`'s balance."""
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative, got {amount}")
        self.allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move `amount` from `sender` to `recipient`.

        The ledger does not authenticate `sender`: whoever calls this acts for
        the named wallet. Callers that expose transfers to untrusted principals
        must check that the caller is `sender` themselves, or use
        `transfer_from` with an allowance.

        Returns:
            True if applied, False if the sender's balance is insufficient.
        """
        require_positive(amount)
        if not recipient or recipient == SYSTEM_WALLET:
            return self._reject(f"invalid recipient {recipient!r}")
        if self.balance_of(sender) < amount:
            return self._reject(
                f"{sender} {self.symbol}: balance {self.balance_of(sender)} < {amount}"
            )
        self._apply(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """
        Move `amount` from `owner` to `recipient` on `spender`'s allowance.

        Returns:
            True if applied, False if allowance or balance is insufficient.
        """
        require_positive(amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            return self._reject(
                f"{spender} may move {allowed} {self.symbol} of {owner}, not {amount}"
            )
        if not self.transfer(owner, recipient, amount):
            return False
        self.allowances[(owner, spender)] = allowed - amount
        return True

    # ========================================================================
    # ISSUANCE (owner-gated)
    # ========================================================================

    def mint(self, caller: str, to: str, amount: int) -> bool:
        """
        Issue `amount` new units to `to`.

        Raises:
            Unauthorized: if caller is not the owner
            NonPositiveAmount: if amount <= 0
            ValueError: if `to` is empty or the system wallet
        """
        self._require_owner(caller)
        require_positive(amount)
        if not to or to == SYSTEM_WALLET:
            raise ValueError(f"Cannot mint to {to!r}")
        self._apply(SYSTEM_WALLET, to, amount)
        self._minted += amount
        if self.verbose:
            print(f"🪙 Minted {amount} {self.symbol} to {to}")
        return True

    def burn(self, caller: str, amount: int) -> None:
        """
        Destroy `amount` of the caller's own balance.

        Raises:
            NonPositiveAmount: if amount <= 0
            InsufficientBalance: if amount exceeds the caller's balance
        """
        require_positive(amount)
        balance = self.balance_of(caller)
        if amount > balance:
            raise InsufficientBalance(
                f"{caller} holds {balance} {self.symbol}, cannot burn {amount}",
                requested=amount,
                available=balance,
            )
        self._apply(caller, SYSTEM_WALLET, amount)
        self._burned += amount
        if self.verbose:
            print(f"🔥 Burned {amount} {self.symbol} from {caller}")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_owner(caller)
        if not new_owner or not new_owner.strip():
            raise ValueError("New owner cannot be empty")
        self.owner = new_owner

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def snapshot(self) -> Tuple[Any, ...]:
        return (
            dict(self.balances),
            dict(self.allowances),
            len(self.transfer_log),
            self._minted,
            self._burned,
            self.owner,
        )

    def restore(self, snapshot: Tuple[Any, ...]) -> None:
        balances, allowances, log_length, minted, burned, owner = snapshot
        self.balances = defaultdict(int, balances)
        self.allowances = dict(allowances)
        del self.transfer_log[log_length:]
        self._minted = minted
        self._burned = burned
        self.owner = owner

    def clone(self) -> TokenLedger:
        """
        Create an independent copy of this ledger.

        The clone shares no mutable state with the original; transfer records
        are immutable and shared by reference.
        """
        cloned = self.__class__.__new__(self.__class__)
        cloned.symbol = self.symbol
        cloned.name = self.name
        cloned.decimals = self.decimals
        cloned.verbose = self.verbose
        cloned.transfer_log = list(self.transfer_log)
        cloned.restore(self.snapshot())
        return cloned

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{caller} is not the owner of {self.symbol}")

    def _apply(self, source: str, dest: str, amount: int) -> None:
        if source != SYSTEM_WALLET:
            self.balances[source] -= amount
        if dest != SYSTEM_WALLET:
            self.balances[dest] += amount
        self.transfer_log.append(
            TokenTransfer(amount, source, dest, len(self.transfer_log))
        )

    def _reject(self, reason: str) -> bool:
        if self.verbose:
            print(f"✗ REJECTED {self.symbol} transfer: {reason}")
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.symbol}, supply={self.total_supply()}, owner={self.owner})"


class StableUnit(TokenLedger):
    """
    The pegged stable unit (1 unit == 1 USD).

    Both issuance and destruction are owner-gated: only the owner (the
    RiskEngine's custody wallet) may mint, and it may only burn its own balance.
    """

    def __init__(
        self,
        owner: str,
        symbol: str = "SUSD",
        name: str = "Synthetic USD",
        verbose: bool = True,
    ):
        super().__init__(symbol, name, owner, decimals=WORKING_DECIMALS, verbose=verbose)

    def burn(self, caller: str, amount: int) -> None:
        """
        Destroy `amount` of the owner's own balance.

        Raises:
            Unauthorized: if caller is not the owner
        """
        self._require_owner(caller)
        super().burn(caller, amount)
