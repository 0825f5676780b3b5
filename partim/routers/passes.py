# partim/routers/passes.py
"""Monthly pass endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from partim.database import get_db
from partim.schemas.monthly_pass import PassCreate, PassOut
from partim.security import Identity, require_permission
from partim.services import pass_service
from partim.services.rbac import Permission

router = APIRouter()


def _pass_out(monthly_pass, now: datetime) -> PassOut:
    derived = pass_service.effective_status(monthly_pass, now)
    out = PassOut.model_validate(monthly_pass)
    return out.model_copy(update={
        "computed_status": derived.status,
        "days_left": derived.days_left,
        "expiring_soon": derived.expiring_soon,
    })


@router.get("/passes", response_model=list[PassOut], summary="List passes with derived status")
def list_passes(status: Optional[str] = None, expiring_only: bool = False,
                db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.PASSES_VIEW))):
    """status filters on the derived status: Active, Expired or Revoked."""
    now = datetime.utcnow()
    return [_pass_out(p, now) for p, _ in pass_service.list_passes(db, now, status, expiring_only)]


@router.post("/passes", response_model=PassOut, status_code=201, summary="Issue a monthly pass")
def issue_pass(body: PassCreate, db: Session = Depends(get_db),
               identity: Identity = Depends(require_permission(Permission.PASSES_CREATE))):
    now = datetime.utcnow()
    monthly_pass = pass_service.issue_pass(db, body.customer_name, body.vehicle_number,
                                           body.phone_number, body.months, now)
    return _pass_out(monthly_pass, now)


@router.get("/passes/{pass_id}", response_model=PassOut)
def get_pass(pass_id: int, db: Session = Depends(get_db),
             identity: Identity = Depends(require_permission(Permission.PASSES_VIEW))):
    return _pass_out(pass_service.get_pass(db, pass_id), datetime.utcnow())


@router.delete("/passes/{pass_id}", response_model=PassOut, summary="Revoke a pass")
def revoke_pass(pass_id: int, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.PASSES_DELETE))):
    return _pass_out(pass_service.revoke_pass(db, pass_id), datetime.utcnow())
