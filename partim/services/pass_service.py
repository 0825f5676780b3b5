# partim/services/pass_service.py
"""
Monthly passes.

A pass runs from start_date to start_date + N calendar months (N >= 1). Only Active
and Revoked are ever stored; Expired is derived from end_date at read time, so a
stale stored status can never contradict the dates.
Holders of an active pass get a zero-priced ticket (see ticket_service.issue_ticket).
"""

import calendar
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from partim.config import settings
from partim.exceptions import InvalidStateError, NotFoundError, ValidationError
from partim.models.monthly_pass import MonthlyPass, PASS_ACTIVE, PASS_EXPIRED, PASS_REVOKED
from partim.utils.db_errors import storage_errors
from partim.utils.logger import audit_log, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PassStatus:
    status: str            # Active | Expired | Revoked
    days_left: int
    expiring_soon: bool


def add_months(start: datetime, months: int) -> datetime:
    """Same day-of-month N months later, clamped to the last day (Jan 31 + 1 -> Feb 28/29)."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def effective_status(monthly_pass: MonthlyPass, now: datetime) -> PassStatus:
    days_left = math.ceil((monthly_pass.end_date - now).total_seconds() / 86400)
    if monthly_pass.status == PASS_REVOKED:
        return PassStatus(PASS_REVOKED, days_left, False)
    if monthly_pass.end_date < now:
        return PassStatus(PASS_EXPIRED, days_left, False)
    return PassStatus(PASS_ACTIVE, days_left, days_left <= settings.PASS_EXPIRING_SOON_DAYS)


def issue_pass(db: Session, customer_name: str, vehicle_number: str, phone_number: Optional[str],
               months: int, now: Optional[datetime] = None) -> MonthlyPass:
    now = now or datetime.utcnow()
    plate = (vehicle_number or "").strip().upper()
    if not plate:
        raise ValidationError("Vehicle number is required")
    if not (customer_name or "").strip():
        raise ValidationError("Customer name is required")
    if not isinstance(months, int) or isinstance(months, bool) or months < 1:
        raise ValidationError("Pass duration must be a whole number of months (>= 1)")

    with storage_errors(db, "issue pass"):
        monthly_pass = MonthlyPass(
            customer_name=customer_name.strip(),
            vehicle_number=plate,
            phone_number=phone_number,
            months=months,
            start_date=now,
            end_date=add_months(now, months),
            status=PASS_ACTIVE,
            created_at=now,
        )
        db.add(monthly_pass)
        db.commit()
    logger.info(f"[PASS] Issued {months}-month pass for {plate} until {monthly_pass.end_date:%Y-%m-%d}")
    audit_log("pass.issue", pass_id=monthly_pass.id, plate=plate, months=months)
    return monthly_pass


def get_pass(db: Session, pass_id: int) -> MonthlyPass:
    with storage_errors(db, "get pass"):
        monthly_pass = db.query(MonthlyPass).filter(MonthlyPass.id == pass_id).first()
    if monthly_pass is None:
        raise NotFoundError(f"Pass {pass_id} not found")
    return monthly_pass


def revoke_pass(db: Session, pass_id: int) -> MonthlyPass:
    monthly_pass = get_pass(db, pass_id)
    with storage_errors(db, "revoke pass"):
        revoked = (
            db.query(MonthlyPass)
            .filter(MonthlyPass.id == pass_id, MonthlyPass.status != PASS_REVOKED)
            .update({MonthlyPass.status: PASS_REVOKED}, synchronize_session=False)
        )
        if not revoked:
            raise InvalidStateError(f"Pass {pass_id} is already revoked")
        db.commit()
    db.refresh(monthly_pass)
    logger.info(f"[PASS] Revoked pass {pass_id} ({monthly_pass.vehicle_number})")
    audit_log("pass.revoke", pass_id=pass_id, plate=monthly_pass.vehicle_number)
    return monthly_pass


def find_active_pass(db: Session, vehicle_number: str, now: datetime) -> Optional[MonthlyPass]:
    """Unrevoked pass for the plate whose end_date has not passed, or None."""
    plate = (vehicle_number or "").strip().upper()
    with storage_errors(db, "pass lookup"):
        return (
            db.query(MonthlyPass)
            .filter(
                MonthlyPass.vehicle_number == plate,
                MonthlyPass.status == PASS_ACTIVE,
                MonthlyPass.end_date >= now,
            )
            .order_by(MonthlyPass.end_date.desc())
            .first()
        )


def list_passes(db: Session, now: datetime, status: Optional[str] = None,
                expiring_only: bool = False) -> list[tuple[MonthlyPass, PassStatus]]:
    """Passes newest first, each with its derived status. Filters on the derived status."""
    with storage_errors(db, "list passes"):
        passes = db.query(MonthlyPass).order_by(MonthlyPass.created_at.desc()).all()
    result = []
    for monthly_pass in passes:
        derived = effective_status(monthly_pass, now)
        if status and derived.status != status:
            continue
        if expiring_only and not derived.expiring_soon:
            continue
        result.append((monthly_pass, derived))
    return result


