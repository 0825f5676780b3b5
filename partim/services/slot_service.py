# partim/services/slot_service.py
"""
Parking slot occupancy. A single is_occupied flag per slot, flipped with
conditional UPDATEs so two tickets can never claim the same slot.
Spot labels that are not in parking_slots are accepted as-is (free-text spots).
"""

from sqlalchemy.orm import Session
from partim.exceptions import ValidationError
from partim.models.parking_slot import ParkingSlot
from partim.utils.db_errors import storage_errors
from partim.utils.logger import get_logger

logger = get_logger(__name__)


def occupy_slot(db: Session, slot_number: str) -> bool:
    """
    Mark a slot occupied inside the caller's transaction (no commit).
    Returns False for an untracked spot label; raises ValidationError if taken.
    """
    claimed = (
        db.query(ParkingSlot)
        .filter(ParkingSlot.slot_number == slot_number, ParkingSlot.is_occupied == False)  # noqa: E712
        .update({ParkingSlot.is_occupied: True}, synchronize_session=False)
    )
    if claimed:
        return True
    if db.query(ParkingSlot.id).filter(ParkingSlot.slot_number == slot_number).first():
        raise ValidationError(f"Spot {slot_number} is already occupied")
    return False


def release_slot(db: Session, slot_number: str):
    """Free a slot inside the caller's transaction (no commit)."""
    db.query(ParkingSlot).filter(ParkingSlot.slot_number == slot_number).update(
        {ParkingSlot.is_occupied: False}, synchronize_session=False
    )


def list_slots(db: Session, section: str = None, vehicle_type: str = None) -> list[ParkingSlot]:
    with storage_errors(db, "list slots"):
        q = db.query(ParkingSlot)
        if section:
            q = q.filter(ParkingSlot.section == section)
        if vehicle_type:
            q = q.filter(ParkingSlot.vehicle_type == vehicle_type)
        return q.order_by(ParkingSlot.slot_number).all()


def create_slot(db: Session, slot_number: str, section: str = "A", vehicle_type: str = None) -> ParkingSlot:
    slot_number = (slot_number or "").strip().upper()
    if not slot_number:
        raise ValidationError("Slot number is required")
    with storage_errors(db, "create slot", conflict=f"Slot {slot_number} already exists"):
        slot = ParkingSlot(slot_number=slot_number, section=section or "A",
                           vehicle_type=vehicle_type, is_occupied=False)
        db.add(slot)
        db.commit()
    logger.info(f"[MAP] Added slot {slot_number} in section {slot.section}")
    return slot
