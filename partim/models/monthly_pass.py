# partim/models/monthly_pass.py
"""
Monthly passes. Stored status is Active or Revoked; Expired is derived from end_date
(see pass_service.effective_status), so a stored "Active" past its end_date is expired.
"""

from sqlalchemy import Column, Integer, String, DateTime
from partim.database import Base

PASS_ACTIVE = "Active"
PASS_EXPIRED = "Expired"
PASS_REVOKED = "Revoked"


class MonthlyPass(Base):
    __tablename__ = "monthly_passes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(200), nullable=False)
    vehicle_number = Column(String(20), nullable=False, index=True)
    phone_number = Column(String(30))
    months = Column(Integer, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default=PASS_ACTIVE, nullable=False)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<MonthlyPass {self.id} plate={self.vehicle_number} until={self.end_date}>"
