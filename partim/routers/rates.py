# partim/routers/rates.py
"""Hourly rate table: CRUD keyed by vehicle type."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from partim.database import get_db
from partim.schemas.rate import RateIn, RateOut, RateUpdate
from partim.security import Identity, require_permission
from partim.services import rate_service
from partim.services.rbac import Permission

router = APIRouter()


@router.get("/rates", response_model=list[RateOut], summary="List hourly rates")
def list_rates(db: Session = Depends(get_db),
               identity: Identity = Depends(require_permission(Permission.RATES_VIEW))):
    return rate_service.list_rates(db)


@router.post("/rates", response_model=RateOut, status_code=201, summary="Add a vehicle type")
def create_rate(body: RateIn, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.RATES_UPDATE))):
    return rate_service.create_rate(db, body.vehicle_type, body.hourly_rate)


@router.put("/rates/{vehicle_type}", response_model=RateOut, summary="Set rate (create or update)")
def upsert_rate(vehicle_type: str, body: RateUpdate, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.RATES_UPDATE))):
    """Applies to tickets issued from now on; existing ticket prices are unchanged."""
    return rate_service.upsert_rate(db, vehicle_type, body.hourly_rate)


@router.delete("/rates/{vehicle_type}", summary="Remove a vehicle type")
def delete_rate(vehicle_type: str, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.RATES_UPDATE))):
    rate_service.delete_rate(db, vehicle_type)
    return {"status": "removed", "vehicle_type": vehicle_type}
