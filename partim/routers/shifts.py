# partim/routers/shifts.py
"""Officer shifts: clock in/out, the caller's open shift and history, all shifts for managers."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import date, datetime, time
from typing import Optional
from partim.database import get_db
from partim.schemas.shift import ClockOutRequest, ShiftOut
from partim.security import Identity, require_permission
from partim.services import shift_service
from partim.services.rbac import Permission, has_permission

router = APIRouter()


def _check_owner(shift, identity: Identity):
    """Officers may only touch their own shifts; shifts.all lifts that."""
    if shift.officer_id != identity.user_id and not has_permission(identity.role_name, Permission.SHIFTS_ALL):
        raise HTTPException(status_code=403, detail="Not your shift")


@router.post("/shifts/clock-in", response_model=ShiftOut, status_code=201, summary="Start a shift")
def clock_in(db: Session = Depends(get_db),
             identity: Identity = Depends(require_permission(Permission.SHIFTS_MANAGE))):
    return shift_service.clock_in(db, identity.user_id)


@router.post("/shifts/{shift_id}/clock-out", response_model=ShiftOut, summary="End a shift")
def clock_out(shift_id: int, body: ClockOutRequest, db: Session = Depends(get_db),
              identity: Identity = Depends(require_permission(Permission.SHIFTS_MANAGE))):
    """The submitted totals replace the running counters (closing snapshot)."""
    _check_owner(shift_service.get_shift(db, shift_id), identity)
    summary = shift_service.ShiftSummary(cash_collected=body.cash_collected,
                                         tickets_issued=body.tickets_issued, notes=body.notes)
    return shift_service.clock_out(db, shift_id, summary)


@router.get("/shifts/active", response_model=Optional[ShiftOut], summary="Caller's open shift")
def active_shift(db: Session = Depends(get_db),
                 identity: Identity = Depends(require_permission(Permission.SHIFTS_VIEW))):
    return shift_service.get_active_shift(db, identity.user_id)


@router.get("/shifts/history", response_model=list[ShiftOut], summary="Caller's recent shifts")
def shift_history(limit: int = 10, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_permission(Permission.SHIFTS_VIEW))):
    return shift_service.get_shift_history(db, identity.user_id, limit)


@router.get("/shifts", response_model=list[ShiftOut], summary="All officers' shifts")
def list_shifts(officer_id: Optional[str] = None, active_only: bool = False,
                date_from: Optional[date] = None, date_to: Optional[date] = None,
                limit: int = 50, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.SHIFTS_ALL))):
    return shift_service.list_shifts(
        db, officer_id=officer_id, active_only=active_only,
        date_from=datetime.combine(date_from, time.min) if date_from else None,
        date_to=datetime.combine(date_to, time.max) if date_to else None,
        limit=limit,
    )


@router.get("/shifts/{shift_id}", response_model=ShiftOut)
def get_shift(shift_id: int, db: Session = Depends(get_db),
              identity: Identity = Depends(require_permission(Permission.SHIFTS_VIEW))):
    shift = shift_service.get_shift(db, shift_id)
    _check_owner(shift, identity)
    return shift
