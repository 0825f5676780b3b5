# partim/schemas/ticket.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class TicketCreate(BaseModel):
    license_plate: str
    vehicle_type: str
    parking_spot: str
    hours: float = Field(allow_inf_nan=False)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


class TicketOut(BaseModel):
    id: int
    license_plate: str
    vehicle_type: str
    parking_spot: str
    hours: float
    price: int
    entry_time: datetime
    actual_exit_time: Optional[datetime]
    fine_amount: int
    status: str
    is_pass_holder: bool
    customer_name: Optional[str]
    customer_phone: Optional[str]
    officer_id: Optional[str]
    shift_id: Optional[int]

    class Config:
        from_attributes = True


class BillOut(BaseModel):
    ticket_id: int
    price: int
    fine: int
    overdue_hours: float
    total_due: int
    computed_at: datetime


class SettlementOut(BaseModel):
    ticket: TicketOut
    fine: int
    overdue_hours: float
    amount: int
    shift_id: Optional[int] = None


class TicketStatusOut(BaseModel):
    """Public plate lookup. ticket is None when the plate has no Active ticket."""
    license_plate: str
    found: bool
    ticket: Optional[TicketOut] = None
    bill: Optional[BillOut] = None


class DiscountRequest(BaseModel):
    amount: float = Field(ge=0)
