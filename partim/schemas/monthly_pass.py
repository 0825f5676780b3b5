# partim/schemas/monthly_pass.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class PassCreate(BaseModel):
    customer_name: str
    vehicle_number: str
    phone_number: Optional[str] = None
    months: int = 1


class PassOut(BaseModel):
    id: int
    customer_name: str
    vehicle_number: str
    phone_number: Optional[str]
    months: int
    start_date: datetime
    end_date: datetime
    status: str                      # stored: Active | Revoked
    computed_status: Optional[str] = None
    days_left: Optional[int] = None
    expiring_soon: Optional[bool] = None

    class Config:
        from_attributes = True
