# partim/services/rate_service.py
"""
Parking rate table: hourly rate per vehicle type.
Unknown vehicle types fall back to settings.DEFAULT_HOURLY_RATE.
Tickets store their quoted price, so editing or deleting a rate never touches them.
"""

from datetime import datetime
from sqlalchemy.orm import Session
from partim.config import settings
from partim.exceptions import ConflictError, NotFoundError, ValidationError
from partim.models.parking_rate import ParkingRate
from partim.utils.db_errors import storage_errors
from partim.utils.logger import audit_log, get_logger

logger = get_logger(__name__)


def _clean_vehicle_type(vehicle_type: str) -> str:
    cleaned = (vehicle_type or "").strip()
    if not cleaned:
        raise ValidationError("Vehicle type is required")
    return cleaned


def _check_rate(hourly_rate) -> float:
    if hourly_rate is None or hourly_rate < 0:
        raise ValidationError("Hourly rate must be a non-negative number")
    return float(hourly_rate)


def get_rate(db: Session, vehicle_type: str) -> float:
    """Hourly rate for a vehicle type, or the configured default."""
    with storage_errors(db, "rate lookup"):
        rate = db.query(ParkingRate).filter(ParkingRate.vehicle_type == (vehicle_type or "").strip()).first()
    if rate is None:
        logger.debug(f"[RATES] No rate for {vehicle_type!r}, using default {settings.DEFAULT_HOURLY_RATE}")
        return settings.DEFAULT_HOURLY_RATE
    return rate.hourly_rate


def list_rates(db: Session) -> list[ParkingRate]:
    with storage_errors(db, "list rates"):
        return db.query(ParkingRate).order_by(ParkingRate.vehicle_type).all()


def create_rate(db: Session, vehicle_type: str, hourly_rate: float) -> ParkingRate:
    """Insert a new vehicle type. Duplicate vehicle types raise ConflictError."""
    vehicle_type = _clean_vehicle_type(vehicle_type)
    hourly_rate = _check_rate(hourly_rate)
    conflict = f"A rate for {vehicle_type} already exists"
    with storage_errors(db, "create rate", conflict=conflict):
        if db.query(ParkingRate).filter(ParkingRate.vehicle_type == vehicle_type).first():
            raise ConflictError(conflict)
        rate = ParkingRate(vehicle_type=vehicle_type, hourly_rate=hourly_rate, updated_at=datetime.utcnow())
        db.add(rate)
        db.commit()
    logger.info(f"[RATES] Added {vehicle_type} at {hourly_rate}/h")
    audit_log("rate.create", vehicle_type=vehicle_type, hourly_rate=hourly_rate)
    return rate


def upsert_rate(db: Session, vehicle_type: str, hourly_rate: float) -> ParkingRate:
    """Set the rate for a vehicle type, creating it if needed."""
    vehicle_type = _clean_vehicle_type(vehicle_type)
    hourly_rate = _check_rate(hourly_rate)
    with storage_errors(db, "upsert rate", conflict=f"Concurrent update of rate for {vehicle_type}"):
        rate = db.query(ParkingRate).filter(ParkingRate.vehicle_type == vehicle_type).first()
        if rate is None:
            rate = ParkingRate(vehicle_type=vehicle_type, hourly_rate=hourly_rate)
            db.add(rate)
        else:
            rate.hourly_rate = hourly_rate
        rate.updated_at = datetime.utcnow()
        db.commit()
    logger.info(f"[RATES] {vehicle_type} set to {hourly_rate}/h")
    audit_log("rate.upsert", vehicle_type=vehicle_type, hourly_rate=hourly_rate)
    return rate


def delete_rate(db: Session, vehicle_type: str):
    vehicle_type = _clean_vehicle_type(vehicle_type)
    with storage_errors(db, "delete rate"):
        rate = db.query(ParkingRate).filter(ParkingRate.vehicle_type == vehicle_type).first()
        if rate is None:
            raise NotFoundError(f"No rate configured for {vehicle_type}")
        db.delete(rate)
        db.commit()
    logger.info(f"[RATES] Removed {vehicle_type}")
    audit_log("rate.delete", vehicle_type=vehicle_type)


def seed_default_rates(db: Session) -> int:
    """Insert settings.DEFAULT_VEHICLE_RATES if the table is empty. Returns rows added."""
    with storage_errors(db, "seed rates"):
        if db.query(ParkingRate).count():
            return 0
        now = datetime.utcnow()
        for vehicle_type, hourly_rate in settings.DEFAULT_VEHICLE_RATES.items():
            db.add(ParkingRate(vehicle_type=vehicle_type, hourly_rate=hourly_rate, updated_at=now))
        db.commit()
    logger.info(f"[RATES] Seeded default rates: {settings.DEFAULT_VEHICLE_RATES}")
    return len(settings.DEFAULT_VEHICLE_RATES)
