# tests/test_billing.py
"""Unit tests for ticket pricing and overdue fines."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from partim.services.billing import calculate_bill, calculate_fine, calculate_price

NOW = datetime(2026, 3, 14, 18, 0, 0)


class TestPrice:
    def test_whole_hours(self):
        assert calculate_price(3, 40) == 120

    def test_partial_hour_rounds_up(self):
        assert calculate_price(1.5, 25) == 38   # 37.5 -> 38
        assert calculate_price(0.25, 30) == 8   # 7.5 -> 8

    def test_zero_rate_is_free(self):
        assert calculate_price(4, 0) == 0

    @pytest.mark.parametrize("hours", [0.5, 1, 2.25, 7])
    def test_monotonic_in_rate(self, hours):
        prices = [calculate_price(hours, rate) for rate in (0, 10, 12.5, 20, 40)]
        assert prices == sorted(prices)

    @pytest.mark.parametrize("rate", [0, 15, 20.5, 60])
    def test_monotonic_in_hours(self, rate):
        prices = [calculate_price(hours, rate) for hours in (0.1, 0.5, 1, 1.75, 3, 10)]
        assert prices == sorted(prices)


class TestFine:
    def test_within_allowed_time_is_free(self):
        result = calculate_fine(2, NOW - timedelta(hours=1, minutes=30), NOW)
        assert result.fine == 0
        assert result.overdue_hours == 0

    def test_exactly_allowed_time_is_free(self):
        result = calculate_fine(2, NOW - timedelta(hours=2), NOW)
        assert result.fine == 0

    def test_slightly_overdue_costs_full_hour(self):
        result = calculate_fine(2, NOW - timedelta(hours=2.05), NOW)
        assert result.fine == 50 + 1 * 20
        assert result.overdue_hours == pytest.approx(0.05, abs=0.051)

    def test_three_hours_overdue(self):
        result = calculate_fine(2, NOW - timedelta(hours=5), NOW)
        assert result.fine == 50 + 3 * 20
        assert result.overdue_hours == 3.0

    def test_overdue_hours_rounded_for_display(self):
        result = calculate_fine(1, NOW - timedelta(hours=2, minutes=20), NOW)
        assert result.overdue_hours == 1.3
        assert result.fine == 50 + 2 * 20

    def test_custom_fine_constants(self):
        result = calculate_fine(1, NOW - timedelta(hours=3), NOW, base_fine=100, hourly_fine=5)
        assert result.fine == 110


class TestBill:
    def test_bill_adds_fine_to_price(self):
        bill = calculate_bill(80, 2, NOW - timedelta(hours=5), NOW)
        assert (bill.price, bill.fine, bill.total_due) == (80, 110, 190)

    def test_bill_is_repeatable(self):
        entry = NOW - timedelta(hours=3, minutes=10)
        assert calculate_bill(40, 2, entry, NOW) == calculate_bill(40, 2, entry, NOW)
