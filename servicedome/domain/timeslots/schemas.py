"""Time slot schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED
from ...shared.validators import validate_time_label, validate_weekday

SLOT_STATUSES = (SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED)


def _validate_status(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    canonical = v.strip().capitalize()
    if canonical not in SLOT_STATUSES:
        raise ValueError(f"Invalid slot status: {v}")
    return canonical


class SlotCreate(BaseModel):
    day: str
    time: str
    status: str = SLOT_AVAILABLE
    blockReason: Optional[str] = Field(None, max_length=255)

    @field_validator("day")
    @classmethod
    def check_day(cls, v):
        return validate_weekday(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time_label(v)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _validate_status(v)


class SlotUpdate(BaseModel):
    status: Optional[str] = None
    blockReason: Optional[str] = Field(None, max_length=255)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _validate_status(v)
