"""
Tests for engines.inventory.costing — Moving-average unit cost.
"""

from decimal import Decimal

import pytest

from engines.inventory.costing import moving_average_cost, round_cost, round_qty


class TestRoundCost:
    @pytest.mark.parametrize("raw, expected", [
        ("10.005", "10.01"),
        ("10.004", "10.00"),
        ("0.125", "0.13"),
        ("-0.125", "-0.13"),
        (7, "7.00"),
    ])
    def test_half_up(self, raw, expected):
        assert round_cost(Decimal(raw) if isinstance(raw, str) else raw) == Decimal(expected)


class TestMovingAverageCost:
    def test_weighted_average(self):
        result = moving_average_cost(Decimal(100), Decimal("10.00"), Decimal(50), Decimal("13.00"))
        assert result == Decimal("11.00")

    def test_issuance_leaves_cost_unchanged(self):
        assert moving_average_cost(100, Decimal("10.00"), -1, 0) == Decimal("10.00")
        assert moving_average_cost(100, Decimal("10.00"), 0, Decimal("99")) == Decimal("10.00")

    def test_first_receipt_takes_its_cost(self):
        assert moving_average_cost(0, 0, 100, Decimal("10.00")) == Decimal("10.00")

    def test_result_is_rounded(self):
        # (3 * 1.00 + 1 * 2.00) / 4 = 1.25; (1*1 + 2*2)/3 = 1.666…
        assert moving_average_cost(3, Decimal("1.00"), 1, Decimal("2.00")) == Decimal("1.25")
        assert moving_average_cost(1, Decimal("1.00"), 2, Decimal("2.00")) == Decimal("1.67")

    def test_receipt_not_lifting_negative_stock_gives_zero(self):
        assert moving_average_cost(-50, Decimal("10.00"), 20, Decimal("12.00")) == Decimal(0)
        assert moving_average_cost(-20, Decimal("10.00"), 20, Decimal("12.00")) == Decimal(0)

    def test_receipt_over_negative_stock(self):
        # (-10 * 10 + 30 * 12) / 20 = 13.00
        assert moving_average_cost(-10, Decimal("10.00"), 30, Decimal("12.00")) == Decimal("13.00")

    def test_receipt_outweighed_by_negative_value_gives_zero(self):
        # (-100 * 10 + 150 * 1) / 50 would be -17.00
        assert moving_average_cost(-100, Decimal("10.00"), 150, Decimal("1.00")) == Decimal(0)

    def test_accepts_strings(self):
        assert moving_average_cost("100", "10.00", "50", "13.00") == Decimal("11.00")


class TestRoundQty:
    @pytest.mark.parametrize("raw, expected", [
        ("1.23456", "1.2346"),
        ("1.23454", "1.2345"),
        ("-0.00005", "-0.0001"),
        (3, "3.0000"),
    ])
    def test_half_up_to_four_places(self, raw, expected):
        assert round_qty(Decimal(raw) if isinstance(raw, str) else raw) == Decimal(expected)
