# tests/test_loyalty_service.py
"""Loyalty points, tiers, discounts and settlement-driven visits."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError
from partim.exceptions import ConflictError, ValidationError
from partim.models.ticket_settlement import TicketSettlement
from partim.services import loyalty_service, ticket_service
from partim.services.loyalty_service import apply_discount, calculate_points, record_visit, tier_from_points

NOW = datetime(2026, 3, 14, 12, 0, 0)


class TestTiers:
    @pytest.mark.parametrize("points, tier", [
        (0, "Regular"), (99, "Regular"),
        (100, "Silver"), (499, "Silver"),
        (500, "Gold"), (999, "Gold"),
        (1000, "Platinum"), (25000, "Platinum"),
    ])
    def test_tier_boundaries(self, points, tier):
        assert tier_from_points(points) == tier

    def test_points_round_down(self):
        assert calculate_points(59) == 5
        assert calculate_points(9.99) == 0
        assert calculate_points(110) == 11


class TestDiscount:
    def test_regular_gets_nothing(self):
        quote = apply_discount(200, "Regular")
        assert (quote.discount_amount, quote.final_amount, quote.discount_percent) == (0, 200, 0)

    def test_gold_ten_percent(self):
        quote = apply_discount(250, "Gold")
        assert (quote.discount_amount, quote.final_amount) == (25, 225)

    def test_half_units_round_up(self):
        quote = apply_discount(50, "Silver")      # 2.5 off, 47.5 left
        assert (quote.discount_amount, quote.final_amount) == (3, 48)

    def test_unknown_tier_no_discount(self):
        assert apply_discount(100, "Diamond").final_amount == 100


class TestRecordVisit:
    def test_first_visit_creates_record(self, db):
        history = record_visit(db, "mh12ab1234", 150, now=NOW)
        assert history.license_plate == "MH12AB1234"
        assert history.visit_count == 1
        assert history.loyalty_points == 15
        assert history.first_visit == NOW == history.last_visit
        assert history.tier == "Regular"

    def test_two_visits_accumulate(self, db):
        record_visit(db, "KA01XY9", 50, now=NOW)
        history = record_visit(db, "KA01XY9", 60, now=NOW + timedelta(days=1))
        assert history.visit_count == 2
        assert history.total_spent == 110
        assert history.loyalty_points == 11
        assert history.tier == "Regular"
        assert history.first_visit == NOW
        assert history.last_visit == NOW + timedelta(days=1)

    def test_tier_recomputed_on_update(self, db):
        record_visit(db, "GOLD1", 990, now=NOW)          # 99 points
        history = record_visit(db, "GOLD1", 10, now=NOW)  # 100 points
        assert history.tier == "Silver"
        history = record_visit(db, "GOLD1", 9000, now=NOW)
        assert history.loyalty_points == 1000
        assert history.tier == "Platinum"

    def test_points_never_decrease(self, db):
        first = record_visit(db, "ZERO1", 200, now=NOW).loyalty_points
        assert record_visit(db, "ZERO1", 0, now=NOW).loyalty_points == first

    def test_negative_amount_rejected(self, db):
        with pytest.raises(ValidationError):
            record_visit(db, "NEG1", -5, now=NOW)

    def test_top_and_frequent(self, db):
        for _ in range(5):
            record_visit(db, "OFTEN1", 10, now=NOW)
        record_visit(db, "BIG1", 5000, now=NOW)
        assert loyalty_service.get_top_customers(db, 1)[0].license_plate == "BIG1"
        assert [h.license_plate for h in loyalty_service.get_frequent_parkers(db, 5)] == ["OFTEN1"]

    def test_insert_race_retries_as_update(self, db, session_factory):
        # Another settlement inserts the plate's first visit between our UPDATE and INSERT
        real_flush = db.flush
        calls = []

        def racing_flush(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                db.rollback()
                other = session_factory()
                try:
                    record_visit(other, "RACE1", 50, now=NOW)
                finally:
                    other.close()
                raise IntegrityError("INSERT INTO vehicle_history", {}, Exception("UNIQUE constraint failed"))
            return real_flush(*args, **kwargs)

        with patch.object(db, "flush", side_effect=racing_flush):
            history = record_visit(db, "race1", 60, now=NOW)

        assert len(calls) == 1          # retry took the UPDATE branch, no second insert
        assert history.visit_count == 2
        assert history.total_spent == 110
        assert history.loyalty_points == 11

    def test_insert_race_twice_is_conflict(self, db):
        error = IntegrityError("INSERT INTO vehicle_history", {}, Exception("UNIQUE constraint failed"))
        with patch.object(db, "flush", side_effect=error):
            with pytest.raises(ConflictError):
                record_visit(db, "RACE2", 50, now=NOW)
        assert loyalty_service.get_vehicle_history(db, "RACE2") is None

    def test_search_by_plate_substring(self, db):
        for plate in ("MH12AB1234", "MH12CD5678", "KA01AB0001"):
            record_visit(db, plate, 10, now=NOW)
        assert [h.license_plate for h in loyalty_service.search_vehicles(db, "mh12")] == ["MH12AB1234", "MH12CD5678"]
        assert [h.license_plate for h in loyalty_service.search_vehicles(db, "AB")] == ["KA01AB0001", "MH12AB1234"]
        assert loyalty_service.search_vehicles(db, "  ") == []


class TestSettlementConsumer:
    @pytest.mark.asyncio
    async def test_settlement_recorded_once(self, db):
        ticket = ticket_service.issue_ticket(db, "AB12CD", "Car", "A1", 2, now=NOW)
        result = ticket_service.settle_ticket(db, ticket.id, now=NOW + timedelta(hours=5))

        assert await loyalty_service.handle_settlement_loyalty(result.settlement, db) is True
        assert await loyalty_service.handle_settlement_loyalty(result.settlement, db) is False

        history = loyalty_service.get_vehicle_history(db, "AB12CD")
        assert history.visit_count == 1
        assert history.total_spent == result.amount            # 40 + 110
        assert history.loyalty_points == 15
        assert history.last_visit == NOW + timedelta(hours=5)
        assert db.query(TicketSettlement).one().loyalty_recorded is True
