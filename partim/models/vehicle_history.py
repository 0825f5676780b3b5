# partim/models/vehicle_history.py
"""
Per-plate loyalty aggregate. tier is recomputed from loyalty_points on every write.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float
from partim.database import Base


class VehicleHistory(Base):
    __tablename__ = "vehicle_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    visit_count = Column(Integer, default=0, nullable=False)
    total_spent = Column(Float, default=0, nullable=False)
    first_visit = Column(DateTime)
    last_visit = Column(DateTime)
    loyalty_points = Column(Integer, default=0, nullable=False)
    tier = Column(String(20), default="Regular", nullable=False)

    def __repr__(self):
        return f"<VehicleHistory {self.license_plate} points={self.loyalty_points} tier={self.tier}>"
