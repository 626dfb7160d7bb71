"""Account domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import ROLES, SUBSCRIPTION_ACTIVE, SUBSCRIPTION_EXPIRED, TIER_FREE, TIER_PREMIUM
from ...shared.validators import validate_email, validate_phone


def _validate_roles(v: Optional[list[str]]) -> Optional[list[str]]:
    if v is None:
        return v
    roles = []
    for role in v:
        canonical = role.strip().capitalize() if isinstance(role, str) else role
        if canonical not in ROLES:
            raise ValueError(f"Invalid role: {role}")
        if canonical not in roles:
            roles.append(canonical)
    if not roles:
        raise ValueError("At least one role is required")
    return roles


class GeoLocation(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = None


class AccountCreate(BaseModel):
    """Schema for registering an account"""

    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=8, max_length=72)
    phone: str
    roles: list[str]

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("roles")
    @classmethod
    def check_roles(cls, v):
        return _validate_roles(v)


class AccountUpdate(BaseModel):
    """Partial profile update; absent fields keep their value"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    roles: Optional[list[str]] = None
    address: Optional[str] = None
    location: Optional[GeoLocation] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("roles")
    @classmethod
    def check_roles(cls, v):
        return _validate_roles(v)


class PushTokenUpdate(BaseModel):
    token: Optional[str] = None


class SubscriptionUpdate(BaseModel):
    """Subscription state reported by the payment collaborator"""

    membershipTier: str
    subscriptionStatus: str
    paymentAccountRef: Optional[str] = None

    @field_validator("membershipTier")
    @classmethod
    def check_tier(cls, v):
        if v not in (TIER_FREE, TIER_PREMIUM):
            raise ValueError("membershipTier must be 'Free' or 'Premium'")
        return v

    @field_validator("subscriptionStatus")
    @classmethod
    def check_status(cls, v):
        if v not in (SUBSCRIPTION_ACTIVE, SUBSCRIPTION_EXPIRED):
            raise ValueError("subscriptionStatus must be 'Active' or 'Expired'")
        return v
