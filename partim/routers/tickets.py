# partim/routers/tickets.py
"""Ticket lifecycle endpoints: issue, query, bill, settle, expire, revoke."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import date, datetime, time
from typing import Optional
from partim.database import get_db
from partim.schemas.ticket import BillOut, SettlementOut, TicketCreate, TicketOut
from partim.security import Identity, require_permission
from partim.services.rbac import Permission
from partim.services.settlement_dispatcher import dispatch_settlement, replay_pending_settlements
from partim.services.shift_service import get_active_shift
from partim.services import ticket_service
from partim.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _bill_out(ticket, now: datetime) -> BillOut:
    bill = ticket_service.current_bill(ticket, now)
    return BillOut(ticket_id=ticket.id, price=bill.price, fine=bill.fine,
                   overdue_hours=bill.overdue_hours, total_due=bill.total_due, computed_at=now)


@router.post("/tickets", response_model=TicketOut, status_code=201, summary="Issue a parking ticket")
def issue_ticket(body: TicketCreate, db: Session = Depends(get_db),
                 identity: Identity = Depends(require_permission(Permission.TICKETS_CREATE))):
    """Quotes the price from the rate table and counts the ticket on the officer's open shift."""
    shift = get_active_shift(db, identity.user_id)
    return ticket_service.issue_ticket(
        db,
        license_plate=body.license_plate,
        vehicle_type=body.vehicle_type,
        parking_spot=body.parking_spot,
        hours=body.hours,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        officer_id=identity.user_id,
        shift_id=shift.id if shift else None,
    )


@router.get("/tickets", response_model=list[TicketOut], summary="List tickets")
def list_tickets(status: Optional[str] = None, vehicle_type: Optional[str] = None,
                 date_from: Optional[date] = None, date_to: Optional[date] = None,
                 license_plate: Optional[str] = None, limit: int = 50,
                 db: Session = Depends(get_db),
                 identity: Identity = Depends(require_permission(Permission.TICKETS_VIEW))):
    return ticket_service.list_tickets(
        db, status=status, vehicle_type=vehicle_type,
        date_from=datetime.combine(date_from, time.min) if date_from else None,
        date_to=datetime.combine(date_to, time.max) if date_to else None,
        license_plate=license_plate, limit=limit,
    )


@router.get("/tickets/search", response_model=list[TicketOut], summary="Search by plate, name or phone")
def search_tickets(q: str, db: Session = Depends(get_db),
                   identity: Identity = Depends(require_permission(Permission.TICKETS_VIEW))):
    return ticket_service.search_tickets(db, q)


@router.post("/tickets/settlements/replay", summary="Re-apply unfinished settlement side effects")
async def replay_settlements(db: Session = Depends(get_db),
                             identity: Identity = Depends(require_permission(Permission.SETTINGS_UPDATE))):
    replayed = await replay_pending_settlements(db)
    return {"status": "ok", "replayed": replayed}


@router.get("/tickets/{ticket_id}", response_model=TicketOut)
def get_ticket(ticket_id: int, db: Session = Depends(get_db),
               identity: Identity = Depends(require_permission(Permission.TICKETS_VIEW))):
    return ticket_service.get_ticket(db, ticket_id)


@router.get("/tickets/{ticket_id}/bill", response_model=BillOut, summary="Live bill incl. overdue fine")
def get_bill(ticket_id: int, db: Session = Depends(get_db),
             identity: Identity = Depends(require_permission(Permission.TICKETS_VIEW))):
    return _bill_out(ticket_service.get_ticket(db, ticket_id), datetime.utcnow())


@router.post("/tickets/{ticket_id}/settle", response_model=SettlementOut, summary="Mark ticket paid")
async def settle_ticket(ticket_id: int, db: Session = Depends(get_db),
                        identity: Identity = Depends(require_permission(Permission.TICKETS_UPDATE))):
    """
    Fixes the fine at this moment and marks the ticket Paid, then records the visit
    for loyalty and adds the amount to the settling officer's open shift.
    The ticket is Paid once settle_ticket commits; a failed loyalty or shift update
    is logged and left on the settlement row for replay.
    """
    shift = get_active_shift(db, identity.user_id)
    result = ticket_service.settle_ticket(db, ticket_id, shift_id=shift.id if shift else None)
    out = SettlementOut(
        ticket=TicketOut.model_validate(result.ticket),
        fine=result.fine,
        overdue_hours=result.overdue_hours,
        amount=result.amount,
        shift_id=result.settlement.shift_id,
    )
    try:
        await dispatch_settlement(result.settlement, db)
    except Exception as e:
        logger.error(f"[SETTLE] Ticket {ticket_id} paid, side effects pending replay: {e}")
    return out


@router.post("/tickets/{ticket_id}/expire", response_model=TicketOut, summary="Manually expire a ticket")
def expire_ticket(ticket_id: int, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_permission(Permission.TICKETS_UPDATE))):
    return ticket_service.expire_ticket(db, ticket_id)


@router.delete("/tickets/{ticket_id}", summary="Revoke (delete) a ticket")
def revoke_ticket(ticket_id: int, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_permission(Permission.TICKETS_DELETE))):
    ticket_service.revoke_ticket(db, ticket_id)
    return {"status": "revoked", "ticket_id": ticket_id}
