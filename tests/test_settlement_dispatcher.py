# tests/test_settlement_dispatcher.py
"""Settlement fan-out to loyalty and shift consumers, and replay after a crash."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, AsyncMock, patch
from partim.models.ticket_settlement import TicketSettlement
from partim.services import shift_service, ticket_service
from partim.services.loyalty_service import get_vehicle_history
from partim.services.settlement_dispatcher import dispatch_settlement, replay_pending_settlements

START = datetime(2026, 3, 14, 8, 0, 0)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_both_consumers_called(self):
        settlement, db = MagicMock(), MagicMock()
        with patch("partim.services.settlement_dispatcher.handle_settlement_loyalty", new_callable=AsyncMock) as loyalty, \
             patch("partim.services.settlement_dispatcher.handle_settlement_shift", new_callable=AsyncMock) as shift:
            await dispatch_settlement(settlement, db)
        loyalty.assert_awaited_once_with(settlement, db)
        shift.assert_awaited_once_with(settlement, db)

    @pytest.mark.asyncio
    async def test_failing_consumer_does_not_skip_the_other(self):
        settlement, db = MagicMock(), MagicMock()
        with patch("partim.services.settlement_dispatcher.handle_settlement_loyalty",
                   new_callable=AsyncMock, side_effect=RuntimeError("boom")), \
             patch("partim.services.settlement_dispatcher.handle_settlement_shift", new_callable=AsyncMock) as shift:
            with pytest.raises(RuntimeError):
                await dispatch_settlement(settlement, db)
        shift.assert_awaited_once()


class TestReplay:
    @pytest.mark.asyncio
    async def test_replay_applies_missing_side_effects_once(self, db):
        shift = shift_service.clock_in(db, "officer-1", now=START)
        ticket = ticket_service.issue_ticket(db, "AB12CD", "Car", "A1", 1, shift_id=shift.id, now=START)
        # Settlement committed, but the process "died" before dispatching
        result = ticket_service.settle_ticket(db, ticket.id, now=START + timedelta(minutes=40), shift_id=shift.id)

        assert await replay_pending_settlements(db) == 1
        assert await replay_pending_settlements(db) == 0

        assert get_vehicle_history(db, "AB12CD").visit_count == 1
        assert shift_service.get_shift(db, shift.id).cash_collected == result.amount

    @pytest.mark.asyncio
    async def test_replay_after_partial_dispatch(self, db):
        ticket = ticket_service.issue_ticket(db, "AB12CD", "Car", "A1", 1, now=START)
        result = ticket_service.settle_ticket(db, ticket.id, now=START + timedelta(minutes=40))
        await shift_service.handle_settlement_shift(result.settlement, db)

        assert await replay_pending_settlements(db) == 1
        history = get_vehicle_history(db, "AB12CD")
        assert history.visit_count == 1
        assert history.total_spent == 20

    @pytest.mark.asyncio
    async def test_failing_fact_does_not_block_later_ones(self, db):
        # A fact whose shift no longer resolves, written before the good one
        db.add(TicketSettlement(ticket_id=9999, license_plate="BAD1", amount=30, fine_amount=0,
                                shift_id=999, settled_at=START, loyalty_recorded=False, shift_recorded=False))
        db.commit()
        ticket = ticket_service.issue_ticket(db, "GOOD1", "Car", "A1", 1, now=START)
        ticket_service.settle_ticket(db, ticket.id, now=START + timedelta(minutes=40))

        assert await replay_pending_settlements(db) == 1
        assert get_vehicle_history(db, "GOOD1").visit_count == 1

        bad = db.query(TicketSettlement).filter_by(ticket_id=9999).one()
        assert bad.loyalty_recorded is True
        assert bad.shift_recorded is False
        assert await replay_pending_settlements(db) == 0
