# partim/models/ticket.py
"""
Parking tickets table.
One row per parking session. Status moves Active -> Paid or Active -> Expired, never back.
price is quoted at issue; fine_amount and actual_exit_time are written once, at settlement.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean
from partim.database import Base

TICKET_ACTIVE = "Active"
TICKET_PAID = "Paid"
TICKET_EXPIRED = "Expired"


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(20), nullable=False, index=True)   # always upper/trimmed
    vehicle_type = Column(String(50), nullable=False)
    parking_spot = Column(String(50), nullable=False)
    hours = Column(Float, nullable=False)
    price = Column(Integer, nullable=False)
    entry_time = Column(DateTime, nullable=False, index=True)
    actual_exit_time = Column(DateTime)
    fine_amount = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=TICKET_ACTIVE, nullable=False, index=True)
    is_pass_holder = Column(Boolean, default=False, nullable=False)
    customer_name = Column(String(200))
    customer_phone = Column(String(30))
    officer_id = Column(String(100))
    shift_id = Column(Integer)               # shift the ticket was issued under
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Ticket {self.id} plate={self.license_plate} status={self.status}>"
