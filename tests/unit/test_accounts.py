"""
test_accounts.py - Unit tests for AccountLedger

Tests:
- Zero-initialized reads
- Credit/debit of collateral and debt, including underflow protection
- Aggregates across accounts
- Snapshot, restore and clone independence
- The shared positive-amount guard
"""

import pytest

from stableledger import (
    AccountLedger,
    AccountSnapshot,
    TokenLedger,
    InsufficientBalance,
    NonPositiveAmount,
    require_positive,
    to_wei,
)


@pytest.fixture
def accounts():
    return AccountLedger()


class TestRequirePositive:

    def test_positive_amount_passes(self):
        require_positive(1)

    @pytest.mark.parametrize("amount", [0, -1, -to_wei(5)])
    def test_non_positive_amount_raises(self, amount):
        with pytest.raises(NonPositiveAmount) as exc_info:
            require_positive(amount)
        assert exc_info.value.amount == amount

    def test_token_and_accounts_share_the_guard(self, accounts):
        token = TokenLedger("WETH", "Wrapped Ether", owner="deployer", verbose=False)
        with pytest.raises(NonPositiveAmount):
            accounts.credit_collateral("alice", "WETH", 0)
        with pytest.raises(NonPositiveAmount):
            token.transfer("alice", "bob", 0)


class TestReads:

    def test_unknown_account_reads_zero(self, accounts):
        assert accounts.get_collateral("alice", "WETH") == 0
        assert accounts.get_debt("alice") == 0
        assert accounts.get_collateral_map("alice") == {}

    def test_reads_do_not_create_accounts(self, accounts):
        accounts.get_collateral("alice", "WETH")
        accounts.get_debt("alice")
        assert accounts.list_accounts() == set()

    def test_get_account_snapshot(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        accounts.increase_debt("alice", to_wei(100))
        snap = accounts.get_account("alice")
        assert snap == AccountSnapshot("alice", {"WETH": to_wei(1)}, to_wei(100))
        assert not snap.is_empty()

    def test_empty_snapshot(self, accounts):
        assert accounts.get_account("bob").is_empty()


class TestCollateral:

    def test_credit_accumulates(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        assert accounts.credit_collateral("alice", "WETH", to_wei(2)) == to_wei(3)
        assert accounts.get_collateral("alice", "WETH") == to_wei(3)

    def test_debit(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(3))
        assert accounts.debit_collateral("alice", "WETH", to_wei(1)) == to_wei(2)

    def test_debit_to_zero_keeps_account(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(3))
        accounts.debit_collateral("alice", "WETH", to_wei(3))
        assert accounts.get_collateral("alice", "WETH") == 0
        assert "alice" in accounts.list_accounts()

    def test_overdraw_raises(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        with pytest.raises(InsufficientBalance) as exc_info:
            accounts.debit_collateral("alice", "WETH", to_wei(2))
        assert exc_info.value.requested == to_wei(2)
        assert exc_info.value.available == to_wei(1)
        assert accounts.get_collateral("alice", "WETH") == to_wei(1)

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amounts_rejected(self, accounts, amount):
        with pytest.raises(NonPositiveAmount):
            accounts.credit_collateral("alice", "WETH", amount)
        with pytest.raises(NonPositiveAmount):
            accounts.debit_collateral("alice", "WETH", amount)

    def test_total_collateral(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        accounts.credit_collateral("bob", "WETH", to_wei(2))
        accounts.credit_collateral("bob", "WBTC", to_wei(5))
        assert accounts.total_collateral("WETH") == to_wei(3)
        assert accounts.total_collateral("WBTC") == to_wei(5)
        assert accounts.total_collateral("LINK") == 0


class TestDebt:

    def test_increase_and_decrease(self, accounts):
        accounts.increase_debt("alice", to_wei(100))
        assert accounts.decrease_debt("alice", to_wei(40)) == to_wei(60)

    def test_over_repay_raises(self, accounts):
        accounts.increase_debt("alice", to_wei(100))
        with pytest.raises(InsufficientBalance):
            accounts.decrease_debt("alice", to_wei(101))
        assert accounts.get_debt("alice") == to_wei(100)

    def test_repay_without_debt_raises(self, accounts):
        with pytest.raises(InsufficientBalance):
            accounts.decrease_debt("alice", 1)

    def test_total_debt(self, accounts):
        accounts.increase_debt("alice", to_wei(100))
        accounts.increase_debt("bob", to_wei(50))
        assert accounts.total_debt() == to_wei(150)


class TestSnapshots:

    def test_restore_discards_later_changes(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        snap = accounts.snapshot()
        accounts.credit_collateral("alice", "WETH", to_wei(5))
        accounts.increase_debt("bob", to_wei(10))
        accounts.restore(snap)
        assert accounts.get_collateral("alice", "WETH") == to_wei(1)
        assert accounts.get_debt("bob") == 0
        assert accounts.list_accounts() == {"alice"}

    def test_snapshot_is_not_aliased(self, accounts):
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        snap = accounts.snapshot()
        accounts.restore(snap)
        accounts.credit_collateral("alice", "WETH", to_wei(1))
        assert snap[0]["alice"]["WETH"] == to_wei(1)

    def test_clone_is_independent(self, accounts):
        accounts.increase_debt("alice", to_wei(100))
        cloned = accounts.clone()
        cloned.increase_debt("alice", to_wei(1))
        assert accounts.get_debt("alice") == to_wei(100)
        assert cloned.get_debt("alice") == to_wei(101)
