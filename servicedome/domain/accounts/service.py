"""Account service - Business logic for accounts, roles and profiles"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import Conflict, NotFound, ValidationError
from ...models import (
    ROLE_CUSTOMER,
    ROLE_VENDOR,
    SUBSCRIPTION_EXPIRED,
    TIER_FREE,
    Account,
    CustomerProfile,
    VendorProfile,
)
from ...plan_limits import get_page_limit
from ...security_utils import hash_password
from .repository import AccountRepository
from .schemas import AccountCreate, AccountUpdate, SubscriptionUpdate

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for account business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()

    def get_account(self, account_id: int) -> Account:
        account = self.repo.get_by_id(self.db, account_id)
        if not account:
            raise NotFound("Account not found")
        return account

    def create_account(self, data: AccountCreate) -> Account:
        """Register an account with the profiles matching its roles"""
        if self.repo.get_by_email(self.db, data.email):
            raise Conflict("This email is already registered")

        account = self.repo.create(
            self.db,
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            roles=list(data.roles),
        )
        self._sync_profiles(account, data.roles)

        try:
            self.db.commit()
        except IntegrityError as e:
            # Email taken between the check and the insert
            self.db.rollback()
            raise Conflict("This email is already registered") from e

        self.db.refresh(account)
        logger.info(f"🆕 Account {account.id} registered with roles {account.roles}")
        return account

    def update_profile(self, account_id: int, data: AccountUpdate) -> Account:
        """Apply a partial profile update; roles drive which profiles exist"""
        account = self.get_account(account_id)

        if data.name is not None:
            account.name = data.name
        if data.phone is not None:
            account.phone = data.phone

        if data.roles is not None:
            if ROLE_VENDOR not in data.roles and account.has_role(ROLE_VENDOR):
                if self.repo.count_pages(self.db, account.id) > 0:
                    raise Conflict("Delete your business pages before removing the Vendor role")
            account.roles = list(data.roles)
            self._sync_profiles(account, data.roles)

        if data.address is not None or data.location is not None:
            if not account.customer_profile:
                raise ValidationError("Address and location are only stored for customers")
            profile = account.customer_profile
            if data.address is not None:
                profile.address = data.address
            if data.location is not None:
                if data.location.latitude is not None:
                    profile.latitude = data.location.latitude
                if data.location.longitude is not None:
                    profile.longitude = data.location.longitude
                if data.location.address is not None:
                    profile.location_address = data.location.address

        self.db.commit()
        self.db.refresh(account)
        logger.info(f"✅ Account {account.id} profile updated")
        return account

    def update_push_token(self, account_id: int, token: Optional[str]) -> Account:
        account = self.get_account(account_id)
        account.expo_push_token = token or None
        self.db.commit()
        logger.info(f"📱 Push token {'saved' if token else 'cleared'} for account {account.id}")
        return account

    def apply_subscription(self, account_id: int, data: SubscriptionUpdate) -> VendorProfile:
        """
        Record the subscription state confirmed by the payment provider.
        Downgrading keeps existing pages; only new pages are blocked by the quota.
        """
        profile = self.repo.get_vendor_profile(self.db, account_id)
        if not profile:
            raise NotFound("Vendor not found")

        profile.membership_tier = data.membershipTier
        profile.subscription_status = data.subscriptionStatus
        if data.paymentAccountRef is not None:
            profile.payment_account_ref = data.paymentAccountRef
        self.db.commit()
        self.db.refresh(profile)
        logger.info(
            f"💳 Vendor {account_id} subscription: {profile.membership_tier}/{profile.subscription_status}"
        )
        return profile

    @staticmethod
    def _sync_profiles(account: Account, roles: list[str]) -> None:
        """Keep profile presence equal to role membership"""
        if ROLE_CUSTOMER in roles and account.customer_profile is None:
            account.customer_profile = CustomerProfile()
        elif ROLE_CUSTOMER not in roles and account.customer_profile is not None:
            account.customer_profile = None

        if ROLE_VENDOR in roles and account.vendor_profile is None:
            account.vendor_profile = VendorProfile(
                membership_tier=TIER_FREE, subscription_status=SUBSCRIPTION_EXPIRED, page_count=0
            )
        elif ROLE_VENDOR not in roles and account.vendor_profile is not None:
            account.vendor_profile = None

    @staticmethod
    def to_response(account: Account) -> dict:
        customer = None
        if account.customer_profile:
            profile = account.customer_profile
            customer = {
                "address": profile.address,
                "location": {
                    "latitude": profile.latitude,
                    "longitude": profile.longitude,
                    "address": profile.location_address,
                },
            }

        vendor = None
        if account.vendor_profile:
            profile = account.vendor_profile
            vendor = {
                "membershipTier": profile.membership_tier,
                "subscriptionStatus": profile.subscription_status,
                "pageCount": profile.page_count,
                "pageLimit": get_page_limit(profile.membership_tier),
            }

        return {
            "id": account.id,
            "name": account.name,
            "email": account.email,
            "phone": account.phone,
            "roles": account.roles,
            "customerProfile": customer,
            "vendorProfile": vendor,
            "hasPushToken": bool(account.expo_push_token),
        }
