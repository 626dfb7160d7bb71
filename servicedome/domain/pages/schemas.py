"""Business page domain schemas - Pydantic models for validation"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import parse_json_field, validate_weekday


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


class OpeningHoursEntry(BaseModel):
    day: str
    openingTime: str
    closingTime: str
    isClosed: bool = False

    @field_validator("day")
    @classmethod
    def check_day(cls, v):
        return validate_weekday(v)

    @field_validator("openingTime", "closingTime")
    @classmethod
    def check_time(cls, v):
        if not v or not v.strip():
            raise ValueError("Opening hours need both an opening and a closing time")
        return v.strip()


def _validate_opening_hours(v):
    if v is None:
        return v
    seen = set()
    for entry in v:
        if entry.day in seen:
            raise ValueError(f"Opening hours list {entry.day} more than once")
        seen.add(entry.day)
    return v


class CategoryInput(BaseModel):
    """Directory category a page is listed under"""

    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = None
    image: Optional[str] = None

    @model_validator(mode="after")
    def fill_slug(self):
        self.slug = slugify(self.slug or self.name)
        if not self.slug:
            raise ValueError("Category slug cannot be empty")
        return self


class PageLocation(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = None


def _fold_flat_location(data):
    """Accept latitude/longitude/address at the top level as well as under "location" """
    if not isinstance(data, dict):
        return data
    flat = {k: data[k] for k in ("latitude", "longitude", "address") if k in data}
    if flat:
        data = {k: v for k, v in data.items() if k not in flat}
        location = parse_json_field(data.get("location"), "location") or {}
        if isinstance(location, dict):
            data["location"] = {**flat, **location}
    return data


class PageCreate(BaseModel):
    """Schema for creating a business page"""

    businessName: str = Field(..., min_length=1, max_length=255)
    category: CategoryInput
    about: Optional[str] = None
    storePolicies: Optional[str] = None
    logo: Optional[str] = None
    banner: Optional[str] = None
    location: Optional[PageLocation] = None
    openingHours: list[OpeningHoursEntry] = []

    @model_validator(mode="before")
    @classmethod
    def normalize_payload(cls, data):
        return _fold_flat_location(data)

    @field_validator("openingHours", "category", "location", mode="before")
    @classmethod
    def decode_json(cls, v, info):
        return parse_json_field(v, info.field_name)

    @field_validator("openingHours")
    @classmethod
    def check_opening_hours(cls, v):
        return _validate_opening_hours(v)

    @field_validator("businessName")
    @classmethod
    def check_name(cls, v):
        if not v.strip():
            raise ValueError("Business name is required")
        return v.strip()


class PageUpdate(BaseModel):
    """Partial page update; absent fields keep their value"""

    businessName: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[CategoryInput] = None
    about: Optional[str] = None
    storePolicies: Optional[str] = None
    logo: Optional[str] = None
    banner: Optional[str] = None
    location: Optional[PageLocation] = None
    openingHours: Optional[list[OpeningHoursEntry]] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_payload(cls, data):
        return _fold_flat_location(data)

    @field_validator("openingHours", "category", "location", mode="before")
    @classmethod
    def decode_json(cls, v, info):
        return parse_json_field(v, info.field_name)

    @field_validator("openingHours")
    @classmethod
    def check_opening_hours(cls, v):
        return _validate_opening_hours(v)


class ServiceCreate(BaseModel):
    """A bookable service; needs either a page category id or an inline category label"""

    name: str = Field(..., min_length=1, max_length=255)
    categoryId: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: float = 0
    duration: int = 0
    images: list[str] = []

    @field_validator("price", "duration")
    @classmethod
    def check_non_negative(cls, v, info):
        if v < 0:
            raise ValueError(f"{info.field_name} must be zero or more")
        return v

    @model_validator(mode="after")
    def check_category(self):
        if (self.categoryId is None) == (not self.category):
            raise ValueError("Provide exactly one of categoryId or category")
        return self


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    categoryId: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = None
    images: Optional[list[str]] = None

    @field_validator("price", "duration")
    @classmethod
    def check_non_negative(cls, v, info):
        if v is not None and v < 0:
            raise ValueError(f"{info.field_name} must be zero or more")
        return v

    @model_validator(mode="after")
    def check_category(self):
        if self.categoryId is not None and self.category:
            raise ValueError("Provide either categoryId or category, not both")
        return self


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class DeliveryRate(BaseModel):
    distance: float = Field(..., ge=0)
    fee: float = Field(..., ge=0)


class SelfPickup(BaseModel):
    enabled: bool = False
    location: Optional[str] = None
    instructions: Optional[str] = None


class DeliverySettings(BaseModel):
    enabled: bool = False
    fixedFee: float = Field(0, ge=0)
    distanceBased: bool = False
    rates: list[DeliveryRate] = []
    availableZones: list[str] = []
    estimatedTime: Optional[str] = None
    selfPickup: SelfPickup = SelfPickup()
