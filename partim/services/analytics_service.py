# partim/services/analytics_service.py
"""Revenue and ticket counts for the analytics dashboard."""

from datetime import date, datetime, time, timedelta
from sqlalchemy import func
from sqlalchemy.orm import Session
from partim.models.ticket import Ticket, TICKET_ACTIVE, TICKET_PAID
from partim.utils.db_errors import storage_errors


def _day_bounds(target: date) -> tuple[datetime, datetime]:
    start = datetime.combine(target, time.min)
    return start, start + timedelta(days=1)


def daily_summary(db: Session, target: date) -> dict:
    """Tickets issued/settled on a day, revenue (price + fine of tickets settled that day), fines."""
    start, end = _day_bounds(target)
    with storage_errors(db, "daily summary"):
        issued = db.query(func.count(Ticket.id)).filter(
            Ticket.created_at >= start, Ticket.created_at < end,
        ).scalar()
        settled_count, revenue, fines = db.query(
            func.count(Ticket.id),
            func.coalesce(func.sum(Ticket.price + Ticket.fine_amount), 0),
            func.coalesce(func.sum(Ticket.fine_amount), 0),
        ).filter(
            Ticket.status == TICKET_PAID,
            Ticket.actual_exit_time >= start, Ticket.actual_exit_time < end,
        ).one()
        active = db.query(func.count(Ticket.id)).filter(Ticket.status == TICKET_ACTIVE).scalar()
    return {
        "date": str(target),
        "tickets_issued": issued,
        "tickets_settled": settled_count,
        "revenue": int(revenue),
        "fines_collected": int(fines),
        "active_tickets": active,
    }


def revenue_by_vehicle_type(db: Session, date_from: date, date_to: date) -> list[dict]:
    """Settled revenue per vehicle type between two dates, inclusive."""
    start, _ = _day_bounds(date_from)
    _, end = _day_bounds(date_to)
    with storage_errors(db, "revenue by vehicle type"):
        rows = (
            db.query(
                Ticket.vehicle_type,
                func.count(Ticket.id),
                func.sum(Ticket.price + Ticket.fine_amount),
            )
            .filter(Ticket.status == TICKET_PAID,
                    Ticket.actual_exit_time >= start, Ticket.actual_exit_time < end)
            .group_by(Ticket.vehicle_type)
            .order_by(Ticket.vehicle_type)
            .all()
        )
    return [{"vehicle_type": vt, "tickets": count, "revenue": int(total or 0)} for vt, count, total in rows]
