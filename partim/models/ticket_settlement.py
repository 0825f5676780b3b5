# partim/models/ticket_settlement.py
"""
TicketSettled facts, written in the same transaction as the settlement itself.
Loyalty and shift consumers each flip their own *_recorded flag when they apply
the fact, so a crash between settlement and a side effect is recovered by replay.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from partim.database import Base


class TicketSettlement(Base):
    __tablename__ = "ticket_settlements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Integer, unique=True, nullable=False, index=True)
    license_plate = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)          # price + fine
    fine_amount = Column(Integer, nullable=False)
    shift_id = Column(Integer)                        # shift collecting the cash, if any
    settled_at = Column(DateTime, nullable=False, index=True)
    loyalty_recorded = Column(Boolean, default=False, nullable=False)
    shift_recorded = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<TicketSettlement ticket={self.ticket_id} amount={self.amount}>"
