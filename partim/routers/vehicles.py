# partim/routers/vehicles.py
"""Vehicle history and loyalty: per-plate record, leaderboards, discount quotes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from partim.database import get_db
from partim.exceptions import NotFoundError
from partim.schemas.ticket import DiscountRequest
from partim.schemas.vehicle_history import DiscountQuoteOut, VehicleHistoryOut
from partim.security import Identity, require_permission
from partim.services import loyalty_service
from partim.services.rbac import Permission

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleHistoryOut], summary="Search vehicles by plate")
def search_vehicles(q: str, db: Session = Depends(get_db),
                    identity: Identity = Depends(require_permission(Permission.VEHICLES_VIEW))):
    return loyalty_service.search_vehicles(db, q)


@router.get("/vehicles/top", response_model=list[VehicleHistoryOut], summary="Top customers by points")
def top_customers(limit: int = 10, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_permission(Permission.VEHICLES_VIEW))):
    return loyalty_service.get_top_customers(db, limit)


@router.get("/vehicles/frequent", response_model=list[VehicleHistoryOut], summary="Frequent parkers")
def frequent_parkers(min_visits: int = 5, db: Session = Depends(get_db),
                     identity: Identity = Depends(require_permission(Permission.VEHICLES_VIEW))):
    return loyalty_service.get_frequent_parkers(db, min_visits)


@router.get("/vehicles/{plate}", response_model=VehicleHistoryOut, summary="Loyalty record for a plate")
def vehicle_history(plate: str, db: Session = Depends(get_db),
                    identity: Identity = Depends(require_permission(Permission.VEHICLES_VIEW))):
    history = loyalty_service.get_vehicle_history(db, plate)
    if history is None:
        raise NotFoundError(f"No visits recorded for {plate.strip().upper()}")
    return history


@router.post("/vehicles/{plate}/discount", response_model=DiscountQuoteOut, summary="Quote a tier discount")
def quote_discount(plate: str, body: DiscountRequest, db: Session = Depends(get_db),
                   identity: Identity = Depends(require_permission(Permission.VEHICLES_VIEW))):
    """Plates without history are Regular (no discount)."""
    history = loyalty_service.get_vehicle_history(db, plate)
    tier = history.tier if history else loyalty_service.TIER_REGULAR
    quote = loyalty_service.apply_discount(body.amount, tier)
    return DiscountQuoteOut(
        license_plate=plate.strip().upper(),
        tier=tier,
        amount=body.amount,
        discount_percent=quote.discount_percent,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
    )
