# partim/services/ticket_service.py
"""
Ticket lifecycle.

    Active --settle--> Paid       (terminal)
    Active --expire--> Expired    (terminal, manual only: nothing expires tickets on a timer)

issue      quotes price = ceil(hours * rate) (0 for monthly pass holders), claims the spot
settle     fixes the fine at the moment of settlement, frees the spot, and writes a
           TicketSettlement fact in the same transaction; loyalty and shift totals are
           updated from that fact by settlement_dispatcher
lookup     public status check: only Active tickets are discoverable by plate

Settle and expire are compare-and-swap updates on status, so of two concurrent
settlements exactly one wins and the other gets InvalidStateError.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from partim.exceptions import InvalidStateError, NotFoundError, ValidationError
from partim.models.ticket import Ticket, TICKET_ACTIVE, TICKET_PAID, TICKET_EXPIRED
from partim.models.ticket_settlement import TicketSettlement
from partim.services.billing import BillBreakdown, calculate_bill, calculate_fine, calculate_price
from partim.services.pass_service import find_active_pass
from partim.services.rate_service import get_rate
from partim.services.shift_service import get_shift, increment_shift_counters
from partim.services.slot_service import occupy_slot, release_slot
from partim.utils.db_errors import storage_errors
from partim.utils.logger import audit_log, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    ticket: Ticket
    settlement: TicketSettlement
    fine: int
    overdue_hours: float
    amount: int            # price + fine


def normalize_plate(plate: str) -> str:
    return (plate or "").strip().upper()


def normalize_spot(spot: str) -> str:
    return (spot or "").strip().upper()


def issue_ticket(
    db: Session,
    license_plate: str,
    vehicle_type: str,
    parking_spot: str,
    hours: float,
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    officer_id: Optional[str] = None,
    shift_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Ticket:
    """
    Issue an Active ticket. The caller picks a free spot; if the spot is tracked in
    parking_slots it is flagged occupied here, and an occupied spot is rejected.
    When shift_id is given the shift's tickets_issued counter is incremented.
    """
    plate = normalize_plate(license_plate)
    spot = normalize_spot(parking_spot)
    vehicle_type = (vehicle_type or "").strip()
    if not plate:
        raise ValidationError("License plate is required")
    if not vehicle_type:
        raise ValidationError("Vehicle type is required")
    if not spot:
        raise ValidationError("Parking spot is required")
    if hours is None or not math.isfinite(hours) or hours <= 0:
        raise ValidationError("Hours must be a finite number greater than zero")
    now = now or datetime.utcnow()

    monthly_pass = find_active_pass(db, plate, now)
    price = 0 if monthly_pass else calculate_price(hours, get_rate(db, vehicle_type))

    with storage_errors(db, "issue ticket"):
        occupy_slot(db, spot)
        ticket = Ticket(
            license_plate=plate,
            vehicle_type=vehicle_type,
            parking_spot=spot,
            hours=hours,
            price=price,
            entry_time=now,
            fine_amount=0,
            status=TICKET_ACTIVE,
            is_pass_holder=monthly_pass is not None,
            customer_name=customer_name,
            customer_phone=customer_phone,
            officer_id=officer_id,
            shift_id=shift_id,
            created_at=now,
        )
        db.add(ticket)
        if shift_id is not None:
            increment_shift_counters(db, shift_id, tickets_issued=1)
        db.commit()

    logger.info(f"[TICKET] Issued #{ticket.id} plate={plate} spot={spot} {hours}h price={price}"
                f"{' (pass holder)' if monthly_pass else ''}")
    audit_log("ticket.issue", ticket_id=ticket.id, plate=plate, price=price, officer_id=officer_id)
    return ticket


def get_ticket(db: Session, ticket_id: int) -> Ticket:
    with storage_errors(db, "get ticket"):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if ticket is None:
        raise NotFoundError(f"Ticket {ticket_id} not found")
    return ticket


def current_bill(ticket: Ticket, now: datetime) -> BillBreakdown:
    """
    Amount due if the ticket were settled at `now`. Read-only and repeatable.
    Settled or expired tickets return their fixed price + fine_amount.
    """
    if ticket.status != TICKET_ACTIVE:
        fine = ticket.fine_amount or 0
        return BillBreakdown(price=ticket.price, fine=fine, overdue_hours=0, total_due=ticket.price + fine)
    return calculate_bill(ticket.price, ticket.hours, ticket.entry_time, now)


def settle_ticket(db: Session, ticket_id: int, now: Optional[datetime] = None,
                  shift_id: Optional[int] = None) -> SettlementResult:
    """
    Mark an Active ticket Paid with the fine due at `now`.
    shift_id names the shift collecting the money (None if no shift is open).
    """
    now = now or datetime.utcnow()
    ticket = get_ticket(db, ticket_id)
    if ticket.status != TICKET_ACTIVE:
        raise InvalidStateError(f"Ticket {ticket_id} is already {ticket.status}")
    if shift_id is not None and get_shift(db, shift_id).end_time is not None:
        raise InvalidStateError(f"Shift {shift_id} is closed")

    result = calculate_fine(ticket.hours, ticket.entry_time, now)
    amount = ticket.price + result.fine

    with storage_errors(db, "settle ticket", conflict=f"Ticket {ticket_id} was already settled"):
        settled = (
            db.query(Ticket)
            .filter(Ticket.id == ticket_id, Ticket.status == TICKET_ACTIVE)
            .update({
                Ticket.status: TICKET_PAID,
                Ticket.fine_amount: result.fine,
                Ticket.actual_exit_time: now,
            }, synchronize_session=False)
        )
        if not settled:
            raise InvalidStateError(f"Ticket {ticket_id} is no longer Active")
        release_slot(db, ticket.parking_spot)
        settlement = TicketSettlement(
            ticket_id=ticket_id,
            license_plate=ticket.license_plate,
            amount=amount,
            fine_amount=result.fine,
            shift_id=shift_id,
            settled_at=now,
            loyalty_recorded=False,
            shift_recorded=False,
        )
        db.add(settlement)
        db.commit()

    db.refresh(ticket)
    if result.fine:
        logger.warning(f"[TICKET] #{ticket_id} overdue {result.overdue_hours}h, fine {result.fine}")
    logger.info(f"[TICKET] Settled #{ticket_id} plate={ticket.license_plate} amount={amount}")
    audit_log("ticket.settle", ticket_id=ticket_id, amount=amount, fine=result.fine, shift_id=shift_id)
    return SettlementResult(ticket=ticket, settlement=settlement, fine=result.fine,
                            overdue_hours=result.overdue_hours, amount=amount)


def expire_ticket(db: Session, ticket_id: int) -> Ticket:
    """Manual Active -> Expired. Frees the spot; no fine is recorded."""
    ticket = get_ticket(db, ticket_id)
    with storage_errors(db, "expire ticket"):
        expired = (
            db.query(Ticket)
            .filter(Ticket.id == ticket_id, Ticket.status == TICKET_ACTIVE)
            .update({Ticket.status: TICKET_EXPIRED}, synchronize_session=False)
        )
        if not expired:
            raise InvalidStateError(f"Ticket {ticket_id} is {ticket.status}, only Active tickets can expire")
        release_slot(db, ticket.parking_spot)
        db.commit()
    db.refresh(ticket)
    logger.info(f"[TICKET] Expired #{ticket_id} plate={ticket.license_plate}")
    audit_log("ticket.expire", ticket_id=ticket_id)
    return ticket


def revoke_ticket(db: Session, ticket_id: int):
    """Administrative delete. An Active ticket's spot is freed."""
    ticket = get_ticket(db, ticket_id)
    plate, status = ticket.license_plate, ticket.status
    with storage_errors(db, "revoke ticket"):
        if status == TICKET_ACTIVE:
            release_slot(db, ticket.parking_spot)
        db.delete(ticket)
        db.commit()
    logger.warning(f"[TICKET] Revoked #{ticket_id} plate={plate} (was {status})")
    audit_log("ticket.revoke", ticket_id=ticket_id, plate=plate, status=status)


def lookup_active_ticket(db: Session, license_plate: str) -> Optional[Ticket]:
    """Current Active ticket for a plate, or None. Settled tickets are never returned."""
    plate = normalize_plate(license_plate)
    if not plate:
        raise ValidationError("License plate is required")
    with storage_errors(db, "ticket lookup"):
        return (
            db.query(Ticket)
            .filter(Ticket.license_plate == plate, Ticket.status == TICKET_ACTIVE)
            .order_by(Ticket.entry_time.desc())
            .first()
        )


def public_status(db: Session, license_plate: str, now: datetime) -> Optional[tuple[Ticket, BillBreakdown]]:
    ticket = lookup_active_ticket(db, license_plate)
    if ticket is None:
        return None
    return ticket, current_bill(ticket, now)


def list_tickets(db: Session, status: str = None, vehicle_type: str = None,
                 date_from: datetime = None, date_to: datetime = None,
                 license_plate: str = None, limit: int = None) -> list[Ticket]:
    with storage_errors(db, "list tickets"):
        q = db.query(Ticket)
        if status:
            q = q.filter(Ticket.status == status)
        if vehicle_type:
            q = q.filter(Ticket.vehicle_type == vehicle_type)
        if date_from:
            q = q.filter(Ticket.created_at >= date_from)
        if date_to:
            q = q.filter(Ticket.created_at <= date_to)
        if license_plate:
            q = q.filter(Ticket.license_plate.ilike(f"%{license_plate.strip()}%"))
        q = q.order_by(Ticket.created_at.desc())
        if limit:
            q = q.limit(limit)
        return q.all()


def search_tickets(db: Session, term: str) -> list[Ticket]:
    """Match plate, customer name or phone (case-insensitive substring), newest 20."""
    pattern = f"%{(term or '').strip()}%"
    with storage_errors(db, "search tickets"):
        return (
            db.query(Ticket)
            .filter(or_(
                Ticket.license_plate.ilike(pattern),
                Ticket.customer_name.ilike(pattern),
                Ticket.customer_phone.ilike(pattern),
            ))
            .order_by(Ticket.created_at.desc())
            .limit(20)
            .all()
        )
