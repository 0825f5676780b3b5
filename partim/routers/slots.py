# partim/routers/slots.py
"""Parking map: slots and their occupancy flag."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from partim.database import get_db
from partim.schemas.slot import SlotCreate, SlotOut
from partim.security import Identity, require_permission
from partim.services import slot_service
from partim.services.rbac import Permission

router = APIRouter()


@router.get("/slots", response_model=list[SlotOut], summary="List parking slots")
def list_slots(section: Optional[str] = None, vehicle_type: Optional[str] = None,
               db: Session = Depends(get_db),
               identity: Identity = Depends(require_permission(Permission.MAP_VIEW))):
    return slot_service.list_slots(db, section=section, vehicle_type=vehicle_type)


@router.post("/slots", response_model=SlotOut, status_code=201, summary="Add a parking slot")
def create_slot(body: SlotCreate, db: Session = Depends(get_db),
                identity: Identity = Depends(require_permission(Permission.MAP_MANAGE))):
    return slot_service.create_slot(db, body.slot_number, body.section, body.vehicle_type)
