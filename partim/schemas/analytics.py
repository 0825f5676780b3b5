# partim/schemas/analytics.py
from pydantic import BaseModel


class DailySummaryOut(BaseModel):
    date: str
    tickets_issued: int
    tickets_settled: int
    revenue: int
    fines_collected: int
    active_tickets: int


class VehicleTypeRevenueOut(BaseModel):
    vehicle_type: str
    tickets: int
    revenue: int
