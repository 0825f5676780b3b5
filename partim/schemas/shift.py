# partim/schemas/shift.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ShiftOut(BaseModel):
    id: int
    officer_id: str
    start_time: datetime
    end_time: Optional[datetime]
    cash_collected: float
    tickets_issued: int
    notes: Optional[str]

    class Config:
        from_attributes = True


class ClockOutRequest(BaseModel):
    """Closing snapshot; replaces the running totals."""
    cash_collected: float = Field(default=0, ge=0)
    tickets_issued: int = Field(default=0, ge=0)
    notes: Optional[str] = None
