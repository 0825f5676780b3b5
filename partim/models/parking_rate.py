# partim/models/parking_rate.py
"""Hourly rate per vehicle type. Changes apply to future tickets only."""

from sqlalchemy import Column, Integer, String, Float, DateTime
from partim.database import Base


class ParkingRate(Base):
    __tablename__ = "parking_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_type = Column(String(50), unique=True, nullable=False, index=True)
    hourly_rate = Column(Float, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<ParkingRate {self.vehicle_type}={self.hourly_rate}/h>"
