# partim/schemas/slot.py
from pydantic import BaseModel
from typing import Optional


class SlotCreate(BaseModel):
    slot_number: str
    section: str = "A"
    vehicle_type: Optional[str] = None


class SlotOut(BaseModel):
    id: int
    slot_number: str
    section: str
    vehicle_type: Optional[str]
    is_occupied: bool

    class Config:
        from_attributes = True
