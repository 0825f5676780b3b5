# tests/test_analytics_service.py
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, datetime, timedelta
from partim.services import rate_service, ticket_service
from partim.services.analytics_service import daily_summary, revenue_by_vehicle_type

DAY = datetime(2026, 3, 14, 9, 0, 0)


def test_daily_summary_counts_settlements_on_exit_day(db):
    rate_service.upsert_rate(db, "Car", 40)
    rate_service.upsert_rate(db, "Bike", 20)
    car = ticket_service.issue_ticket(db, "CAR1", "Car", "A1", 1, now=DAY)
    bike = ticket_service.issue_ticket(db, "BIKE1", "Bike", "A2", 2, now=DAY)
    ticket_service.issue_ticket(db, "CAR2", "Car", "A3", 1, now=DAY)

    # 2.05h on a 1h ticket: 50 + ceil(1.05) * 20 = 90 fine
    ticket_service.settle_ticket(db, car.id, now=DAY + timedelta(hours=2, minutes=3))
    ticket_service.settle_ticket(db, bike.id, now=DAY + timedelta(hours=1))

    summary = daily_summary(db, date(2026, 3, 14))
    assert summary["tickets_issued"] == 3
    assert summary["tickets_settled"] == 2
    assert summary["fines_collected"] == 90
    assert summary["revenue"] == 40 + 90 + 40
    assert summary["active_tickets"] == 1

    assert daily_summary(db, date(2026, 3, 15))["tickets_settled"] == 0


def test_revenue_by_vehicle_type(db):
    rate_service.upsert_rate(db, "Car", 40)
    rate_service.upsert_rate(db, "Bike", 20)
    for i, vt in enumerate(["Car", "Car", "Bike"]):
        t = ticket_service.issue_ticket(db, f"P{i}", vt, f"S{i}", 1, now=DAY)
        ticket_service.settle_ticket(db, t.id, now=DAY + timedelta(minutes=30))

    rows = revenue_by_vehicle_type(db, date(2026, 3, 1), date(2026, 3, 31))
    assert rows == [
        {"vehicle_type": "Bike", "tickets": 1, "revenue": 20},
        {"vehicle_type": "Car", "tickets": 2, "revenue": 80},
    ]
    assert revenue_by_vehicle_type(db, date(2026, 4, 1), date(2026, 4, 30)) == []
