# partim/models/parking_slot.py
"""
Parking slots for the facility map.
is_occupied is the single occupancy flag flipped by ticket issue/settle/expire.
"""

from sqlalchemy import Column, Integer, String, Boolean
from partim.database import Base


class ParkingSlot(Base):
    __tablename__ = "parking_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(String(50), unique=True, nullable=False, index=True)
    section = Column(String(50), nullable=False, default="A")
    vehicle_type = Column(String(50))
    is_occupied = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<ParkingSlot {self.slot_number} occupied={self.is_occupied}>"
