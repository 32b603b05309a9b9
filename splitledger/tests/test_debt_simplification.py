"""
Unit Tests for the debt simplification algorithm

Tests cover:
- Greedy matching of largest creditor against largest debtor
- Deterministic tie-breaking on member id
- Transfer count bound and zero-sum guarantees
- Validation and error handling
"""

import random
import pytest
from decimal import Decimal
from splitledger.core.exceptions import ValidationError
from splitledger.utils.debt_simplification import (
    apply_transfers,
    simplify_debts,
    validate_balance_sum
)
from splitledger.tests.conftest import verify_transfers_settle_balances


@pytest.mark.unit
class TestValidateBalanceSum:
    """Test the validate_balance_sum utility function."""

    def test_valid_balanced_sum(self):
        validate_balance_sum({"A": Decimal("50"), "B": Decimal("-50")})

    def test_valid_within_tolerance(self):
        validate_balance_sum({"A": Decimal("50.005"), "B": Decimal("-50")}, tolerance=Decimal("0.01"))

    def test_invalid_outside_tolerance(self):
        with pytest.raises(ValidationError, match="Balances not zero-sum"):
            validate_balance_sum({"A": Decimal("50"), "B": Decimal("-49")})


@pytest.mark.unit
class TestSimplifyDebts:
    """Test the simplify_debts function."""

    def test_three_member_scenario(self):
        """A fronted 90 split evenly: B and C each pay A 30, B first."""
        balances = {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}

        assert simplify_debts(balances) == [
            {"from": "B", "to": "A", "amount": Decimal("30.00")},
            {"from": "C", "to": "A", "amount": Decimal("30.00")},
        ]

    def test_largest_debtor_first(self):
        balances = {"A": Decimal("80"), "B": Decimal("-10"), "C": Decimal("-70")}

        assert simplify_debts(balances) == [
            {"from": "C", "to": "A", "amount": Decimal("70.00")},
            {"from": "B", "to": "A", "amount": Decimal("10.00")},
        ]

    def test_largest_parties_are_rematched_each_round(self):
        # After D pays A 90, A is owed 10 and B 50: B is now the largest creditor
        balances = {"A": Decimal("100"), "B": Decimal("50"), "C": Decimal("-60"), "D": Decimal("-90")}

        transfers = simplify_debts(balances)

        assert transfers[0] == {"from": "D", "to": "A", "amount": Decimal("90.00")}
        assert transfers[1] == {"from": "C", "to": "B", "amount": Decimal("50.00")}
        assert transfers[2] == {"from": "C", "to": "A", "amount": Decimal("10.00")}
        verify_transfers_settle_balances(balances, transfers)

    def test_tie_break_on_creditors(self):
        balances = {"Z": Decimal("20"), "M": Decimal("20"), "B": Decimal("-40")}

        transfers = simplify_debts(balances)

        assert [t["to"] for t in transfers] == ["M", "Z"]

    def test_deterministic_regardless_of_input_order(self):
        balances = {"C": Decimal("-25"), "A": Decimal("40"), "D": Decimal("-25"), "B": Decimal("10")}
        reordered = dict(reversed(list(balances.items())))

        assert simplify_debts(balances) == simplify_debts(reordered)

    def test_empty(self):
        assert simplify_debts({}) == []

    def test_single_member(self):
        assert simplify_debts({"A": Decimal("0")}) == []

    def test_all_zero_balances(self):
        assert simplify_debts({"A": Decimal("0"), "B": Decimal("0"), "C": Decimal("0")}) == []

    def test_balances_within_tolerance_are_ignored(self):
        balances = {"A": Decimal("0.01"), "B": Decimal("-0.01")}
        assert simplify_debts(balances) == []

    def test_unbalanced_input(self):
        with pytest.raises(ValidationError, match="Balances not zero-sum"):
            simplify_debts({"A": Decimal("50"), "B": Decimal("-49")})

    def test_total_transferred_equals_credit(self):
        balances = {
            "A": Decimal("500"),
            "B": Decimal("-100"),
            "C": Decimal("-150"),
            "D": Decimal("-200"),
            "E": Decimal("-50")
        }
        transfers = simplify_debts(balances)

        assert sum(t["amount"] for t in transfers) == Decimal("500.00")
        assert len(transfers) <= len(balances) - 1
        verify_transfers_settle_balances(balances, transfers)

    def test_random_zero_sum_balances(self):
        """Any zero-sum input settles fully in at most n - 1 transfers."""
        rng = random.Random(42)
        for _ in range(50):
            members = [f"User{i:02d}" for i in range(rng.randint(2, 12))]
            balances = {
                member: Decimal(rng.randint(-50000, 50000)) / 100
                for member in members[:-1]
            }
            balances[members[-1]] = -sum(balances.values())

            transfers = simplify_debts(balances)

            non_zero = [b for b in balances.values() if abs(b) > Decimal("0.01")]
            assert len(transfers) <= max(len(non_zero) - 1, 0)
            assert all(t["amount"] > 0 and t["from"] != t["to"] for t in transfers)
            verify_transfers_settle_balances(balances, transfers)


@pytest.mark.unit
class TestApplyTransfers:

    def test_applying_transfers_zeroes_balances(self):
        balances = {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}
        remaining = apply_transfers(balances, simplify_debts(balances))
        assert remaining == {"A": Decimal("0"), "B": Decimal("0"), "C": Decimal("0")}
