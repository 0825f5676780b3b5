# partim/schemas/vehicle_history.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VehicleHistoryOut(BaseModel):
    license_plate: str
    visit_count: int
    total_spent: float
    first_visit: Optional[datetime]
    last_visit: Optional[datetime]
    loyalty_points: int
    tier: str

    class Config:
        from_attributes = True


class DiscountQuoteOut(BaseModel):
    license_plate: str
    tier: str
    amount: float
    discount_percent: int
    discount_amount: int
    final_amount: int
