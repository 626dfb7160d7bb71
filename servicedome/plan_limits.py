"""
Plan limits for vendor business pages.
"""

from typing import Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.orm import Session

from .models import TIER_FREE, TIER_PREMIUM, VendorProfile

# Pages a vendor may own per membership tier (None means unlimited)
PAGE_LIMITS = {TIER_FREE: 1, TIER_PREMIUM: None}


def get_page_limit(tier: Optional[str]) -> Optional[int]:
    """Get the page limit for a tier. Unknown tiers get the Free limit."""
    if tier in PAGE_LIMITS:
        return PAGE_LIMITS[tier]
    return PAGE_LIMITS[TIER_FREE]


def _under_limit_clause():
    """WHERE clause that holds when the vendor may own one more page"""
    clauses = []
    for tier, limit in PAGE_LIMITS.items():
        if limit is None:
            clauses.append(VendorProfile.membership_tier == tier)
        else:
            clauses.append(
                and_(VendorProfile.membership_tier == tier, VendorProfile.page_count < limit)
            )
    return or_(*clauses)


def claim_page_slot(db: Session, account_id: int) -> bool:
    """
    Reserve room for one more page in the vendor's quota.

    The check and the increment are one conditional UPDATE, so two concurrent
    page creations cannot both pass a Free vendor's limit. Does not commit:
    the caller inserts the page in the same transaction.
    """
    result = db.execute(
        update(VendorProfile)
        .where(VendorProfile.account_id == account_id, _under_limit_clause())
        .values(page_count=VendorProfile.page_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_page_slot(db: Session, account_id: int) -> None:
    """Give back a quota slot when a page is deleted. Does not commit."""
    db.execute(
        update(VendorProfile)
        .where(VendorProfile.account_id == account_id, VendorProfile.page_count > 0)
        .values(page_count=VendorProfile.page_count - 1)
        .execution_options(synchronize_session=False)
    )


def get_usage_stats(profile: VendorProfile) -> dict:
    """Current page usage for a vendor profile"""
    limit = get_page_limit(profile.membership_tier)
    return {
        "membershipTier": profile.membership_tier,
        "limit": limit,  # None for unlimited
        "current": profile.page_count,
        "remaining": None if limit is None else max(0, limit - profile.page_count),
    }
