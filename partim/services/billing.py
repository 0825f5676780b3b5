# partim/services/billing.py
"""
Ticket pricing and overdue fines.

Pure functions: no DB, no clock. Callers pass `now` explicitly so a bill can be
recomputed for any instant (tests pin it, routers pass datetime.utcnow()).

Rounding policy:
  - price      = ceil(hours * hourly_rate)                 (partial hours round up)
  - fine       = BASE + ceil(overdue_hours) * HOURLY      (any started hour counts)
  - overdue_hours is reported to one decimal, but the fine uses the unrounded value,
    so 0.05 h overdue still costs one full hourly unit.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from partim.config import settings


@dataclass(frozen=True)
class FineResult:
    fine: int
    overdue_hours: float   # rounded to 1 decimal, display only


@dataclass(frozen=True)
class BillBreakdown:
    price: int
    fine: int
    overdue_hours: float
    total_due: int


def calculate_price(hours: float, hourly_rate: float) -> int:
    """Quoted ticket price, always rounded up to the next whole currency unit."""
    return math.ceil(hours * hourly_rate)


def elapsed_hours(entry_time: datetime, now: datetime) -> float:
    return (now - entry_time).total_seconds() / 3600


def calculate_fine(
    allowed_hours: float,
    entry_time: datetime,
    now: datetime,
    base_fine: Optional[int] = None,
    hourly_fine: Optional[int] = None,
) -> FineResult:
    """
    Fine for staying past allowed_hours. Staying exactly allowed_hours is free.
    base_fine/hourly_fine default to the configured OVERDUE_* settings.
    """
    if base_fine is None:
        base_fine = settings.OVERDUE_BASE_FINE
    if hourly_fine is None:
        hourly_fine = settings.OVERDUE_HOURLY_FINE

    elapsed = elapsed_hours(entry_time, now)
    if elapsed <= allowed_hours:
        return FineResult(fine=0, overdue_hours=0)

    overdue = elapsed - allowed_hours
    fine = base_fine + math.ceil(overdue) * hourly_fine
    return FineResult(fine=fine, overdue_hours=round(overdue, 1))


def calculate_bill(price: int, allowed_hours: float, entry_time: datetime, now: datetime) -> BillBreakdown:
    """Live bill for an open ticket: quoted price plus whatever fine has accrued by `now`."""
    result = calculate_fine(allowed_hours, entry_time, now)
    return BillBreakdown(
        price=price,
        fine=result.fine,
        overdue_hours=result.overdue_hours,
        total_due=price + result.fine,
    )
