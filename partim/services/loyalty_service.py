# partim/services/loyalty_service.py
"""
Vehicle history and loyalty tiers.

Every settled visit adds floor(amount / 10) points (points only go up) and the tier is
recomputed from the new total in the same UPDATE:
  >= 1000 Platinum (15% off) | >= 500 Gold (10%) | >= 100 Silver (5%) | else Regular.
Discounts are quoted by apply_discount(); settlement never applies one by itself.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from partim.config import settings
from partim.exceptions import ConflictError, ValidationError
from partim.models.ticket_settlement import TicketSettlement
from partim.models.vehicle_history import VehicleHistory
from partim.utils.db_errors import storage_errors
from partim.utils.logger import get_logger

logger = get_logger(__name__)

TIER_REGULAR = "Regular"
TIER_SILVER = "Silver"
TIER_GOLD = "Gold"
TIER_PLATINUM = "Platinum"

# Highest first: tier lookup takes the first threshold the points reach
LOYALTY_TIERS = (
    (TIER_PLATINUM, 1000, 15),
    (TIER_GOLD, 500, 10),
    (TIER_SILVER, 100, 5),
    (TIER_REGULAR, 0, 0),
)
TIER_DISCOUNTS = {name: discount for name, _, discount in LOYALTY_TIERS}


@dataclass(frozen=True)
class DiscountQuote:
    discount_amount: int
    final_amount: int
    discount_percent: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_points(amount: float) -> int:
    return math.floor(amount / 10) * settings.POINTS_PER_10_SPENT


def tier_from_points(points: int) -> str:
    for name, min_points, _ in LOYALTY_TIERS:
        if points >= min_points:
            return name
    return TIER_REGULAR


def _tier_expression(points_expr):
    """SQL CASE equivalent of tier_from_points, evaluated against the updated total."""
    return case(
        *[(points_expr >= min_points, name) for name, min_points, _ in LOYALTY_TIERS[:-1]],
        else_=TIER_REGULAR,
    )


def apply_discount(amount: float, tier: str) -> DiscountQuote:
    """Tier discount on an amount. Unknown tiers get no discount."""
    percent = TIER_DISCOUNTS.get(tier, 0)
    discount = amount * percent / 100
    return DiscountQuote(
        discount_amount=_round_half_up(discount),
        final_amount=_round_half_up(amount - discount),
        discount_percent=percent,
    )


def _apply_visit(db: Session, plate: str, amount: float, now: datetime):
    """Upsert one visit inside the caller's transaction. May raise IntegrityError on an insert race."""
    points = calculate_points(amount)
    updated = (
        db.query(VehicleHistory)
        .filter(VehicleHistory.license_plate == plate)
        .update({
            VehicleHistory.visit_count: VehicleHistory.visit_count + 1,
            VehicleHistory.total_spent: VehicleHistory.total_spent + amount,
            VehicleHistory.loyalty_points: VehicleHistory.loyalty_points + points,
            VehicleHistory.tier: _tier_expression(VehicleHistory.loyalty_points + points),
            VehicleHistory.last_visit: now,
        }, synchronize_session=False)
    )
    if not updated:
        db.add(VehicleHistory(
            license_plate=plate,
            visit_count=1,
            total_spent=amount,
            first_visit=now,
            last_visit=now,
            loyalty_points=points,
            tier=tier_from_points(points),
        ))
        db.flush()


def _record(db: Session, plate: str, amount: float, now: datetime,
            before_apply=None) -> Optional[VehicleHistory]:
    # One retry: a concurrent first visit for the same plate wins the insert,
    # after which the UPDATE branch applies.
    for attempt in (1, 2):
        try:
            if before_apply is not None and not before_apply():
                db.rollback()
                return None
            _apply_visit(db, plate, amount, now)
            db.commit()
            break
        except IntegrityError:
            db.rollback()
            if attempt == 2:
                raise ConflictError(f"Could not record visit for {plate}: concurrent update")
            logger.warning(f"[LOYALTY] Insert race on {plate}, retrying as update")
    return get_vehicle_history(db, plate)


def record_visit(db: Session, license_plate: str, amount_spent: float,
                 now: Optional[datetime] = None) -> VehicleHistory:
    plate = (license_plate or "").strip().upper()
    if not plate:
        raise ValidationError("License plate is required")
    if amount_spent is None or amount_spent < 0:
        raise ValidationError("Amount spent cannot be negative")
    now = now or datetime.utcnow()

    with storage_errors(db, "record visit"):
        history = _record(db, plate, amount_spent, now)
    logger.info(f"[LOYALTY] {plate}: visit #{history.visit_count}, "
                f"{history.loyalty_points} pts, tier {history.tier}")
    return history


async def handle_settlement_loyalty(settlement: TicketSettlement, db: Session) -> bool:
    """
    Record a settled ticket as a loyalty visit. The settlement's loyalty_recorded
    flag is claimed in the same transaction, so replays never double-count.
    Returns False if the settlement was already recorded.
    """
    settlement_id = settlement.id
    plate, amount, settled_at = settlement.license_plate, settlement.amount, settlement.settled_at

    def claim() -> bool:
        return bool(
            db.query(TicketSettlement)
            .filter(TicketSettlement.id == settlement_id, TicketSettlement.loyalty_recorded == False)  # noqa: E712
            .update({TicketSettlement.loyalty_recorded: True}, synchronize_session=False)
        )

    with storage_errors(db, "record settlement visit"):
        history = _record(db, plate, amount, settled_at, before_apply=claim)
    if history is None:
        logger.debug(f"[SETTLE] Settlement {settlement_id} already recorded for loyalty")
        return False
    logger.info(f"[LOYALTY] {plate}: +{calculate_points(amount)} pts -> {history.loyalty_points} ({history.tier})")
    return True


def get_vehicle_history(db: Session, license_plate: str) -> Optional[VehicleHistory]:
    plate = (license_plate or "").strip().upper()
    with storage_errors(db, "vehicle history lookup"):
        return db.query(VehicleHistory).filter(VehicleHistory.license_plate == plate).first()


def get_top_customers(db: Session, limit: int = 10) -> list[VehicleHistory]:
    with storage_errors(db, "top customers"):
        return db.query(VehicleHistory).order_by(VehicleHistory.loyalty_points.desc()).limit(limit).all()


def get_frequent_parkers(db: Session, min_visits: int = 5) -> list[VehicleHistory]:
    with storage_errors(db, "frequent parkers"):
        return (
            db.query(VehicleHistory)
            .filter(VehicleHistory.visit_count >= min_visits)
            .order_by(VehicleHistory.visit_count.desc())
            .all()
        )


def search_vehicles(db: Session, term: str, limit: int = 20) -> list[VehicleHistory]:
    """Plate substring match, case-insensitive."""
    term = (term or "").strip().upper()
    if not term:
        return []
    with storage_errors(db, "search vehicles"):
        return (
            db.query(VehicleHistory)
            .filter(VehicleHistory.license_plate.ilike(f"%{term}%"))
            .order_by(VehicleHistory.license_plate)
            .limit(limit)
            .all()
        )
