# partim/schemas/rate.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class RateIn(BaseModel):
    vehicle_type: str
    hourly_rate: float = Field(ge=0)


class RateUpdate(BaseModel):
    hourly_rate: float = Field(ge=0)


class RateOut(BaseModel):
    id: int
    vehicle_type: str
    hourly_rate: float
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
