"""
Unit tests for the Split Model.

Tests cover:
- Valid allocations in their accepted shapes
- Rejection of empty, duplicate, negative and mismatched allocations
- Equal and weighted allocation helpers
"""

import pytest
from decimal import Decimal
from splitledger.core.exceptions import ValidationError
from splitledger.schemas.expense_schema import ExpenseSplitCreate
from splitledger.utils.splits import (
    MAX_AMOUNT,
    equal_allocations,
    make_splits,
    to_amount,
    weighted_allocations
)


@pytest.mark.unit
class TestMakeSplits:
    """Test the make_splits function."""

    def test_valid_allocations(self):
        splits = make_splits(Decimal("90"), [("A", Decimal("30")), ("B", Decimal("30")), ("C", Decimal("30"))])

        assert [s["member_id"] for s in splits] == ["A", "B", "C"]
        assert all(s["share_amount"] == Decimal("30") for s in splits)
        assert all(s["is_paid"] is False for s in splits)

    def test_accepts_schema_objects_and_mappings(self):
        splits = make_splits(
            "50",
            [
                ExpenseSplitCreate(member_id="A", share_amount=Decimal("20")),
                {"member_id": "B", "share_amount": "30"},
            ]
        )
        assert [s["member_id"] for s in splits] == ["A", "B"]
        assert splits[1]["share_amount"] == Decimal("30")

    def test_zero_share_is_allowed(self):
        splits = make_splits(Decimal("10"), [("A", Decimal("10")), ("B", Decimal("0"))])
        assert splits[1]["share_amount"] == Decimal("0")

    def test_empty_allocations(self):
        with pytest.raises(ValidationError, match="At least one split"):
            make_splits(Decimal("10"), [])

    def test_duplicate_member(self):
        with pytest.raises(ValidationError, match="more than once"):
            make_splits(Decimal("10"), [("A", Decimal("5")), ("A", Decimal("5"))])

    def test_negative_share(self):
        with pytest.raises(ValidationError, match="must not be negative"):
            make_splits(Decimal("10"), [("A", Decimal("15")), ("B", Decimal("-5"))])

    def test_sum_mismatch(self):
        """Allocations of 40 + 40 against a total of 100 are rejected."""
        with pytest.raises(ValidationError, match="must equal expense amount") as exc_info:
            make_splits(Decimal("100"), [("A", Decimal("40")), ("B", Decimal("40"))])

        assert exc_info.value.details["difference"] == "-20"

    def test_within_tolerance(self):
        splits = make_splits(Decimal("100"), [("A", Decimal("33.33")), ("B", Decimal("33.33")), ("C", Decimal("33.33"))])
        assert len(splits) == 3

    def test_outside_tolerance(self):
        with pytest.raises(ValidationError):
            make_splits(Decimal("100"), [("A", Decimal("33.33")), ("B", Decimal("33.33")), ("C", Decimal("33.32"))])

    def test_shares_are_not_adjusted(self):
        splits = make_splits(Decimal("100"), [("A", Decimal("50.01")), ("B", Decimal("50"))])
        assert splits[0]["share_amount"] == Decimal("50.01")

    def test_sub_cent_share(self):
        with pytest.raises(ValidationError, match="two decimal places"):
            make_splits(Decimal("1"), [("A", Decimal("0.505")), ("B", Decimal("0.495"))])

    def test_missing_member_id(self):
        with pytest.raises(ValidationError, match="member_id"):
            make_splits(Decimal("10"), [("", Decimal("10"))])

    def test_huge_total_and_share(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            make_splits("1e30", [("A", "1e30")])

    def test_huge_share(self):
        with pytest.raises(ValidationError, match="share_amount must not exceed"):
            make_splits(Decimal("10"), [("A", "1e30"), ("B", "-1e30")])


@pytest.mark.unit
class TestToAmount:

    def test_float_goes_through_str(self):
        assert to_amount(0.1) == Decimal("0.1")

    def test_not_a_number(self):
        with pytest.raises(ValidationError, match="must be a number"):
            to_amount("ten")

    def test_infinite(self):
        with pytest.raises(ValidationError, match="finite"):
            to_amount(Decimal("Infinity"))

    @pytest.mark.parametrize("value", ["1e30", Decimal("100000000"), "-100000000.00"])
    def test_beyond_column_range(self, value):
        with pytest.raises(ValidationError, match="must not exceed"):
            to_amount(value)

    def test_largest_amount(self):
        assert to_amount("99999999.99") == MAX_AMOUNT


@pytest.mark.unit
class TestEqualAllocations:

    def test_even_division(self):
        assert equal_allocations(Decimal("90"), ["A", "B", "C"]) == [
            ("A", Decimal("30.00")), ("B", Decimal("30.00")), ("C", Decimal("30.00"))
        ]

    def test_leftover_cents_go_to_first_members(self):
        allocations = equal_allocations(Decimal("100"), ["A", "B", "C"])
        assert allocations == [("A", Decimal("33.34")), ("B", Decimal("33.33")), ("C", Decimal("33.33"))]
        assert sum(share for _, share in allocations) == Decimal("100")

    def test_result_passes_validation(self):
        allocations = equal_allocations(Decimal("10.01"), ["A", "B", "C", "D", "E", "F", "G"])
        assert sum(share for _, share in allocations) == Decimal("10.01")
        make_splits(Decimal("10.01"), allocations, tolerance=Decimal("0"))

    def test_no_members(self):
        with pytest.raises(ValidationError):
            equal_allocations(Decimal("10"), [])


@pytest.mark.unit
class TestWeightedAllocations:

    def test_weighted_split(self):
        allocations = weighted_allocations(Decimal("100"), {"A": Decimal("0.6"), "B": Decimal("0.4")})
        assert allocations == [("A", Decimal("60.00")), ("B", Decimal("40.00"))]

    def test_remainder_goes_to_last_member(self):
        third = Decimal("1") / Decimal("3")
        allocations = weighted_allocations(Decimal("100"), {"A": third, "B": third, "C": third})
        assert allocations[-1] == ("C", Decimal("33.34"))
        assert sum(share for _, share in allocations) == Decimal("100")

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="Weights must sum to 1.0"):
            weighted_allocations(Decimal("100"), {"A": Decimal("0.6"), "B": Decimal("0.5")})

    def test_negative_weight(self):
        with pytest.raises(ValidationError, match="negative"):
            weighted_allocations(Decimal("100"), {"A": Decimal("1.5"), "B": Decimal("-0.5")})

    def test_weight_not_a_number(self):
        with pytest.raises(ValidationError, match="Weights must be numbers"):
            weighted_allocations(Decimal("100"), {"A": "half", "B": "half"})
