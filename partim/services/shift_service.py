# partim/services/shift_service.py
"""
Officer shift accounting.

Per officer: NoActiveShift -> clock_in -> ActiveShift -> clock_out -> NoActiveShift.
Closed shifts are kept as history.

Counters are only ever changed with SQL-side increments
(tickets_issued = tickets_issued + n), so concurrent ticket issues and settlements
on the same shift never lose an update. clock_out overwrites them with the officer's
closing summary.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from partim.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from partim.models.shift import Shift
from partim.models.ticket_settlement import TicketSettlement
from partim.utils.db_errors import storage_errors
from partim.utils.logger import audit_log, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ShiftSummary:
    """Closing snapshot supplied at clock-out."""
    cash_collected: float = 0
    tickets_issued: int = 0
    notes: Optional[str] = None


def get_shift(db: Session, shift_id: int) -> Shift:
    with storage_errors(db, "get shift"):
        shift = db.query(Shift).filter(Shift.id == shift_id).first()
    if shift is None:
        raise NotFoundError(f"Shift {shift_id} not found")
    return shift


def get_active_shift(db: Session, officer_id: str) -> Optional[Shift]:
    with storage_errors(db, "active shift lookup"):
        return db.query(Shift).filter(Shift.officer_id == officer_id, Shift.end_time.is_(None)).first()


def clock_in(db: Session, officer_id: str, now: Optional[datetime] = None) -> Shift:
    if not (officer_id or "").strip():
        raise ValidationError("Officer id is required")
    now = now or datetime.utcnow()
    conflict = f"Officer {officer_id} already has an active shift"

    # The partial unique index catches a concurrent clock-in that passes this check
    with storage_errors(db, "clock in", conflict=conflict):
        if db.query(Shift.id).filter(Shift.officer_id == officer_id, Shift.end_time.is_(None)).first():
            raise ConflictError(conflict)
        shift = Shift(officer_id=officer_id, start_time=now, cash_collected=0, tickets_issued=0)
        db.add(shift)
        db.commit()

    logger.info(f"[SHIFT] Officer {officer_id} clocked in (shift {shift.id})")
    audit_log("shift.clock_in", shift_id=shift.id, officer_id=officer_id)
    return shift


def clock_out(db: Session, shift_id: int, summary: Optional[ShiftSummary] = None,
              now: Optional[datetime] = None) -> Shift:
    """Close an open shift, replacing its counters with the closing summary."""
    summary = summary or ShiftSummary()
    if summary.cash_collected < 0 or summary.tickets_issued < 0:
        raise ValidationError("Shift totals cannot be negative")
    now = now or datetime.utcnow()

    shift = get_shift(db, shift_id)
    with storage_errors(db, "clock out"):
        closed = (
            db.query(Shift)
            .filter(Shift.id == shift_id, Shift.end_time.is_(None))
            .update({
                Shift.end_time: now,
                Shift.cash_collected: summary.cash_collected,
                Shift.tickets_issued: summary.tickets_issued,
                Shift.notes: summary.notes,
            }, synchronize_session=False)
        )
        if not closed:
            raise InvalidStateError(f"Shift {shift_id} is not open")
        db.commit()

    db.refresh(shift)
    logger.info(f"[SHIFT] Shift {shift_id} closed: {shift.tickets_issued} tickets, {shift.cash_collected} collected")
    audit_log("shift.clock_out", shift_id=shift_id, officer_id=shift.officer_id,
              tickets=shift.tickets_issued, cash=shift.cash_collected)
    return shift


def increment_shift_counters(db: Session, shift_id: int, tickets_issued: int = 0, cash_collected: float = 0):
    """Atomic in-database increment inside the caller's transaction (no commit)."""
    updated = (
        db.query(Shift)
        .filter(Shift.id == shift_id)
        .update({
            Shift.tickets_issued: Shift.tickets_issued + tickets_issued,
            Shift.cash_collected: Shift.cash_collected + cash_collected,
        }, synchronize_session=False)
    )
    if not updated:
        raise NotFoundError(f"Shift {shift_id} not found")


def accumulate(db: Session, shift_id: int, tickets_issued: int = 0, cash_collected: float = 0) -> Shift:
    """Add deltas to a shift's running totals."""
    with storage_errors(db, "accumulate shift totals"):
        increment_shift_counters(db, shift_id, tickets_issued, cash_collected)
        db.commit()
    logger.debug(f"[SHIFT] Shift {shift_id} += {tickets_issued} tickets, {cash_collected} cash")
    return get_shift(db, shift_id)


async def handle_settlement_shift(settlement: TicketSettlement, db: Session) -> bool:
    """
    Add a settled ticket's amount to the collecting shift. Applies each settlement
    at most once; returns False if it was already recorded.
    """
    with storage_errors(db, "record settlement on shift"):
        claimed = (
            db.query(TicketSettlement)
            .filter(TicketSettlement.id == settlement.id, TicketSettlement.shift_recorded == False)  # noqa: E712
            .update({TicketSettlement.shift_recorded: True}, synchronize_session=False)
        )
        if not claimed:
            logger.debug(f"[SETTLE] Ticket {settlement.ticket_id} already recorded on shift")
            return False
        if settlement.shift_id is not None:
            increment_shift_counters(db, settlement.shift_id, cash_collected=settlement.amount)
        db.commit()

    if settlement.shift_id is not None:
        logger.info(f"[SHIFT] Shift {settlement.shift_id} collected {settlement.amount} for ticket {settlement.ticket_id}")
    return True


def get_shift_history(db: Session, officer_id: str, limit: int = 10) -> list[Shift]:
    with storage_errors(db, "shift history"):
        return (
            db.query(Shift)
            .filter(Shift.officer_id == officer_id)
            .order_by(Shift.start_time.desc())
            .limit(limit)
            .all()
        )


def list_shifts(db: Session, officer_id: str = None, active_only: bool = False,
                date_from: datetime = None, date_to: datetime = None, limit: int = None) -> list[Shift]:
    with storage_errors(db, "list shifts"):
        q = db.query(Shift)
        if officer_id:
            q = q.filter(Shift.officer_id == officer_id)
        if active_only:
            q = q.filter(Shift.end_time.is_(None))
        if date_from:
            q = q.filter(Shift.start_time >= date_from)
        if date_to:
            q = q.filter(Shift.start_time <= date_to)
        q = q.order_by(Shift.start_time.desc())
        if limit:
            q = q.limit(limit)
        return q.all()
