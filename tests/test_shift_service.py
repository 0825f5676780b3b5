# tests/test_shift_service.py
"""Officer shift accounting: clock in/out, counters, settlement cash."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock
from sqlalchemy.exc import IntegrityError
from partim.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from partim.models.shift import Shift
from partim.services import shift_service, ticket_service
from partim.services.shift_service import ShiftSummary, accumulate, clock_in, clock_out

START = datetime(2026, 3, 14, 8, 0, 0)


class TestClockInOut:
    def test_clock_in_starts_zeroed_shift(self, db):
        shift = clock_in(db, "officer-1", now=START)
        assert shift.start_time == START
        assert shift.end_time is None
        assert (shift.tickets_issued, shift.cash_collected) == (0, 0)

    def test_second_clock_in_conflicts(self, db):
        clock_in(db, "officer-1", now=START)
        with pytest.raises(ConflictError):
            clock_in(db, "officer-1", now=START + timedelta(minutes=5))

    def test_other_officer_can_clock_in(self, db):
        clock_in(db, "officer-1", now=START)
        assert clock_in(db, "officer-2", now=START).officer_id == "officer-2"

    def test_clock_in_after_clock_out(self, db):
        first = clock_in(db, "officer-1", now=START)
        clock_out(db, first.id, now=START + timedelta(hours=8))
        second = clock_in(db, "officer-1", now=START + timedelta(hours=9))
        assert second.id != first.id
        assert len(shift_service.get_shift_history(db, "officer-1")) == 2

    def test_clock_out_overwrites_totals(self, db):
        shift = clock_in(db, "officer-1", now=START)
        accumulate(db, shift.id, tickets_issued=3, cash_collected=240)
        closed = clock_out(db, shift.id, ShiftSummary(cash_collected=300, tickets_issued=4, notes="gate 2"),
                           now=START + timedelta(hours=8))
        assert closed.end_time == START + timedelta(hours=8)
        assert (closed.tickets_issued, closed.cash_collected, closed.notes) == (4, 300, "gate 2")

    def test_clock_out_closed_shift_rejected(self, db):
        shift = clock_in(db, "officer-1", now=START)
        clock_out(db, shift.id, now=START + timedelta(hours=1))
        with pytest.raises(InvalidStateError):
            clock_out(db, shift.id, now=START + timedelta(hours=2))

    def test_clock_out_unknown_shift(self, db):
        with pytest.raises(NotFoundError):
            clock_out(db, 404)

    def test_blank_officer_rejected(self, db):
        with pytest.raises(ValidationError):
            clock_in(db, "  ")

    def test_open_shift_unique_at_storage_level(self, db):
        db.add(Shift(officer_id="officer-9", start_time=START, cash_collected=0, tickets_issued=0))
        db.commit()
        db.add(Shift(officer_id="officer-9", start_time=START, cash_collected=0, tickets_issued=0))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_clock_in_race_surfaces_conflict(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None  # check passes
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("uq_shifts_open_per_officer"))

        with pytest.raises(ConflictError):
            clock_in(db, "officer-1", now=START)
        db.rollback.assert_called_once()


class TestCounters:
    def test_accumulate_adds(self, db):
        shift = clock_in(db, "officer-1", now=START)
        accumulate(db, shift.id, tickets_issued=1)
        accumulate(db, shift.id, cash_collected=80)
        updated = accumulate(db, shift.id, tickets_issued=1, cash_collected=70)
        assert (updated.tickets_issued, updated.cash_collected) == (2, 150)

    def test_accumulate_from_two_sessions_keeps_both(self, db, session_factory):
        shift = clock_in(db, "officer-1", now=START)
        first, second = session_factory(), session_factory()
        try:
            # Both sessions read the shift before either writes
            first.get(Shift, shift.id)
            second.get(Shift, shift.id)
            accumulate(first, shift.id, tickets_issued=1, cash_collected=40)
            accumulate(second, shift.id, tickets_issued=1, cash_collected=60)
        finally:
            first.close()
            second.close()
        db.expire_all()
        stored = shift_service.get_shift(db, shift.id)
        assert (stored.tickets_issued, stored.cash_collected) == (2, 100)

    def test_accumulate_unknown_shift(self, db):
        with pytest.raises(NotFoundError):
            accumulate(db, 12345, tickets_issued=1)


class TestSettlementConsumer:
    @pytest.mark.asyncio
    async def test_settlement_cash_added_once(self, db):
        shift = clock_in(db, "officer-1", now=START)
        ticket = ticket_service.issue_ticket(db, "AB12CD", "Car", "A1", 2, shift_id=shift.id, now=START)
        result = ticket_service.settle_ticket(db, ticket.id, now=START + timedelta(hours=1), shift_id=shift.id)

        assert await shift_service.handle_settlement_shift(result.settlement, db) is True
        assert await shift_service.handle_settlement_shift(result.settlement, db) is False

        stored = shift_service.get_shift(db, shift.id)
        assert stored.tickets_issued == 1
        assert stored.cash_collected == result.amount

    @pytest.mark.asyncio
    async def test_settlement_without_shift_is_marked_done(self, db):
        ticket = ticket_service.issue_ticket(db, "AB12CD", "Car", "A1", 2, now=START)
        result = ticket_service.settle_ticket(db, ticket.id, now=START + timedelta(hours=1))
        assert await shift_service.handle_settlement_shift(result.settlement, db) is True
        db.refresh(result.settlement)
        assert result.settlement.shift_recorded is True
