# partim/routers/status.py
"""Public ticket status lookup by plate. No identity required."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from partim.database import get_db
from partim.schemas.ticket import BillOut, TicketOut, TicketStatusOut
from partim.services.ticket_service import normalize_plate, public_status

router = APIRouter()


@router.get("/status/{plate}", response_model=TicketStatusOut, summary="Current ticket and bill for a plate")
def get_status(plate: str, db: Session = Depends(get_db)):
    """No active ticket is a normal answer (found=false), not an error."""
    now = datetime.utcnow()
    found = public_status(db, plate, now)
    if found is None:
        return TicketStatusOut(license_plate=normalize_plate(plate), found=False)
    ticket, bill = found
    return TicketStatusOut(
        license_plate=ticket.license_plate,
        found=True,
        ticket=TicketOut.model_validate(ticket),
        bill=BillOut(ticket_id=ticket.id, price=bill.price, fine=bill.fine,
                     overdue_hours=bill.overdue_hours, total_due=bill.total_due, computed_at=now),
    )
