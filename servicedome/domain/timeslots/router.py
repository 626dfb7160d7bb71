"""Time slot router - FastAPI endpoints for a page's availability grid"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from .schemas import SlotCreate, SlotUpdate
from .service import TimeSlotService

router = APIRouter(prefix="/pages", tags=["Time Slots"])


def get_timeslot_service(db: Session = Depends(get_db)) -> TimeSlotService:
    """Dependency injection for TimeSlotService"""
    return TimeSlotService(db)


@router.get("/{page_id}/timeslots")
async def list_slots(page_id: int, service: TimeSlotService = Depends(get_timeslot_service)):
    return {"success": True, "timeSlots": service.list_slots(page_id)}


@router.post("/{page_id}/timeslots", status_code=201)
async def create_slot(
    page_id: int,
    data: SlotCreate,
    current_account: Account = Depends(get_current_account),
    service: TimeSlotService = Depends(get_timeslot_service),
):
    slot = service.create_slot(page_id, current_account.id, data)
    return {"success": True, "timeSlot": service.to_response(slot, include_day=True)}


@router.put("/{page_id}/timeslots/{day}/{time}")
async def update_slot(
    page_id: int,
    day: str,
    time: str,
    data: SlotUpdate,
    current_account: Account = Depends(get_current_account),
    service: TimeSlotService = Depends(get_timeslot_service),
):
    slot = service.update_slot(page_id, current_account.id, day, time, data)
    return {"success": True, "timeSlot": service.to_response(slot, include_day=True)}


@router.delete("/{page_id}/timeslots/{day}/{time}")
async def delete_slot(
    page_id: int,
    day: str,
    time: str,
    current_account: Account = Depends(get_current_account),
    service: TimeSlotService = Depends(get_timeslot_service),
):
    service.delete_slot(page_id, current_account.id, day, time)
    return {"success": True, "message": "Time slot deleted"}
