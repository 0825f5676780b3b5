# partim/routers/analytics.py
"""Daily revenue and ticket statistics."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from partim.database import get_db
from partim.schemas.analytics import DailySummaryOut, VehicleTypeRevenueOut
from partim.security import Identity, require_permission
from partim.services import analytics_service
from partim.services.rbac import Permission

router = APIRouter()


@router.get("/analytics/daily", response_model=DailySummaryOut, summary="Tickets and revenue for one day")
def daily_summary(target_date: Optional[date] = None, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_permission(Permission.ANALYTICS_VIEW))):
    return analytics_service.daily_summary(db, target_date or date.today())


@router.get("/analytics/revenue-by-type", response_model=list[VehicleTypeRevenueOut])
def revenue_by_type(date_from: date, date_to: Optional[date] = None, db: Session = Depends(get_db),
                    identity: Identity = Depends(require_permission(Permission.ANALYTICS_VIEW))):
    return analytics_service.revenue_by_vehicle_type(db, date_from, date_to or date_from)
