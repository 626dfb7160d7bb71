"""Business page service - Business logic for pages, catalog and delivery settings"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...cache import get_page_cached, invalidate_page_cache, set_page_cached
from ...errors import Forbidden, NotFound, QuotaExceeded, ValidationError
from ...models import ROLE_VENDOR, Account, BusinessPage, PageCategory, ServiceOffering
from ...plan_limits import claim_page_slot, release_page_slot
from ...security_utils import sanitize_text
from .repository import PageRepository
from .schemas import (
    CategoryCreate,
    DeliverySettings,
    PageCreate,
    PageUpdate,
    ServiceCreate,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)


class PageService:
    """Service layer for business pages and their service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PageRepository()

    # ========================================================================
    # ACCESS HELPERS
    # ========================================================================

    def get_page_or_404(self, page_id: int) -> BusinessPage:
        page = self.repo.get_by_id(self.db, page_id)
        if not page:
            raise NotFound("Business page not found")
        return page

    def get_owned_page(self, page_id: int, actor_id: int) -> BusinessPage:
        """Load a page the actor may modify"""
        page = self.get_page_or_404(page_id)
        if page.vendor_id != actor_id:
            logger.warning(f"⚠️ Account {actor_id} tried to modify page {page_id} it does not own")
            raise Forbidden("You do not own this business page")
        return page

    # ========================================================================
    # PAGES
    # ========================================================================

    def create_page(self, owner: Account, data: PageCreate) -> BusinessPage:
        """Create a page after claiming a slot in the vendor's page quota"""
        if not owner.has_role(ROLE_VENDOR):
            raise Forbidden("Only vendors can create business pages")

        if not claim_page_slot(self.db, owner.id):
            self.db.rollback()
            logger.warning(f"⚠️ Vendor {owner.id} hit the page limit of their plan")
            raise QuotaExceeded(
                "You have reached the page limit of your plan. Upgrade to Premium for unlimited pages."
            )

        page = BusinessPage(
            vendor_id=owner.id,
            business_name=data.businessName,
            category_name=data.category.name,
            category_slug=data.category.slug,
            category_image=data.category.image,
            about=sanitize_text(data.about),
            store_policies=sanitize_text(data.storePolicies),
            logo_url=data.logo,
            banner_url=data.banner,
            opening_hours=[entry.model_dump() for entry in data.openingHours],
        )
        if data.location:
            page.latitude = data.location.latitude
            page.longitude = data.location.longitude
            page.address = data.location.address

        self.db.add(page)
        self.db.commit()
        self.db.refresh(page)
        logger.info(f"✅ Business page {page.id} created for vendor {owner.id}")
        return page

    def update_page(self, page_id: int, actor_id: int, data: PageUpdate) -> BusinessPage:
        page = self.get_owned_page(page_id, actor_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("businessName") is not None:
            page.business_name = data.businessName.strip()
        if data.category is not None:
            page.category_name = data.category.name
            page.category_slug = data.category.slug
            page.category_image = data.category.image
        if "about" in changes:
            page.about = sanitize_text(data.about)
        if "storePolicies" in changes:
            page.store_policies = sanitize_text(data.storePolicies)
        if "logo" in changes:
            page.logo_url = data.logo
        if "banner" in changes:
            page.banner_url = data.banner
        if data.openingHours is not None:
            page.opening_hours = [entry.model_dump() for entry in data.openingHours]
        if data.location is not None:
            # Location fields merge with what is already stored
            for field, value in data.location.model_dump(exclude_unset=True).items():
                setattr(page, field, value)

        self.db.commit()
        self.db.refresh(page)
        invalidate_page_cache(page.id)
        logger.info(f"✅ Business page {page.id} updated")
        return page

    def delete_page(self, page_id: int, actor_id: int) -> None:
        """Delete a page and its catalog; bookings that reference it are kept"""
        page = self.get_owned_page(page_id, actor_id)
        self.db.delete(page)
        release_page_slot(self.db, actor_id)
        self.db.commit()
        invalidate_page_cache(page_id)
        logger.info(f"🗑️ Business page {page_id} deleted by vendor {actor_id}")

    def get_page(self, page_id: int) -> dict:
        """Public page view, served from cache when possible"""
        cached = get_page_cached(page_id)
        if cached:
            return cached

        page = self.repo.get_with_catalog(self.db, page_id)
        if not page:
            raise NotFound("Business page not found")

        rendered = self.to_response(page, include_catalog=True)
        rendered["reviewSummary"] = self.repo.review_summary(self.db, page.id)
        set_page_cached(page_id, rendered)
        return rendered

    def list_pages(self, category: Optional[str] = None) -> list[BusinessPage]:
        return self.repo.list_pages(self.db, category)

    def list_vendor_pages(self, vendor_id: int) -> list[BusinessPage]:
        return self.repo.list_by_vendor(self.db, vendor_id)

    # ========================================================================
    # SERVICE CATALOG
    # ========================================================================

    def _resolve_category(self, page_id: int, category_id: int) -> PageCategory:
        category = self.repo.get_category(self.db, page_id, category_id)
        if not category:
            raise ValidationError("Category does not belong to this business page")
        return category

    def add_service(self, page_id: int, actor_id: int, data: ServiceCreate) -> ServiceOffering:
        page = self.get_owned_page(page_id, actor_id)
        if data.price < 0 or data.duration < 0:
            raise ValidationError("Price and duration must be zero or more")

        service = ServiceOffering(
            page_id=page.id,
            name=data.name.strip(),
            description=sanitize_text(data.description),
            price=data.price,
            duration=data.duration,
            images=list(data.images),
        )
        if data.categoryId is not None:
            service.category = self._resolve_category(page.id, data.categoryId)
        else:
            service.category_label = data.category.strip()

        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)
        invalidate_page_cache(page.id)
        logger.info(f"✅ Service {service.id} added to page {page.id}")
        return service

    def update_service(
        self, page_id: int, service_id: int, actor_id: int, data: ServiceUpdate
    ) -> ServiceOffering:
        page = self.get_owned_page(page_id, actor_id)
        service = self.repo.get_service(self.db, page.id, service_id)
        if not service:
            raise NotFound("Service not found")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("price") is not None and changes["price"] < 0:
            raise ValidationError("Price must be zero or more")
        if changes.get("duration") is not None and changes["duration"] < 0:
            raise ValidationError("Duration must be zero or more")

        if changes.get("name") is not None:
            service.name = data.name.strip()
        if "description" in changes:
            service.description = sanitize_text(data.description)
        if changes.get("price") is not None:
            service.price = data.price
        if changes.get("duration") is not None:
            service.duration = data.duration
        if data.images is not None:
            service.images = list(data.images)
        if data.categoryId is not None:
            service.category = self._resolve_category(page.id, data.categoryId)
            service.category_label = None
        elif data.category:
            service.category = None
            service.category_label = data.category.strip()

        self.db.commit()
        self.db.refresh(service)
        invalidate_page_cache(page.id)
        logger.info(f"✅ Service {service.id} updated on page {page.id}")
        return service

    def delete_service(self, page_id: int, service_id: int, actor_id: int) -> None:
        page = self.get_owned_page(page_id, actor_id)
        service = self.repo.get_service(self.db, page.id, service_id)
        if not service:
            raise NotFound("Service not found")
        self.db.delete(service)
        self.db.commit()
        invalidate_page_cache(page.id)
        logger.info(f"🗑️ Service {service_id} removed from page {page.id}")

    def list_services(self, page_id: int) -> list[ServiceOffering]:
        self.get_page_or_404(page_id)
        return self.repo.list_services(self.db, page_id)

    def create_category(self, page_id: int, actor_id: int, data: CategoryCreate) -> PageCategory:
        page = self.get_owned_page(page_id, actor_id)
        category = PageCategory(page_id=page.id, name=data.name.strip())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        invalidate_page_cache(page.id)
        return category

    def list_categories(self, page_id: int) -> list[PageCategory]:
        self.get_page_or_404(page_id)
        return self.repo.list_categories(self.db, page_id)

    # ========================================================================
    # DELIVERY SETTINGS
    # ========================================================================

    def set_delivery_settings(self, page_id: int, actor_id: int, settings: DeliverySettings) -> dict:
        page = self.get_owned_page(page_id, actor_id)
        page.delivery_settings = settings.model_dump()
        self.db.commit()
        invalidate_page_cache(page.id)
        logger.info(f"🚚 Delivery settings saved for page {page.id}")
        return page.delivery_settings

    def get_delivery_settings(self, page_id: int) -> dict:
        page = self.get_page_or_404(page_id)
        if page.delivery_settings:
            return page.delivery_settings
        return DeliverySettings().model_dump()

    # ========================================================================
    # RENDERING
    # ========================================================================

    @staticmethod
    def service_to_response(service: ServiceOffering) -> dict:
        if service.category is not None:
            category = {"id": service.category.id, "name": service.category.name}
        elif service.category_label:
            category = {"id": None, "name": service.category_label}
        else:
            category = None
        return {
            "id": service.id,
            "name": service.name,
            "category": category,
            "description": service.description,
            "price": service.price,
            "duration": service.duration,
            "images": service.images or [],
        }

    @classmethod
    def to_response(cls, page: BusinessPage, include_catalog: bool = False) -> dict:
        response = {
            "id": page.id,
            "vendorId": page.vendor_id,
            "businessName": page.business_name,
            "category": {
                "name": page.category_name,
                "slug": page.category_slug,
                "image": page.category_image,
            },
            "about": page.about,
            "storePolicies": page.store_policies,
            "logo": page.logo_url,
            "banner": page.banner_url,
            "location": {
                "latitude": page.latitude,
                "longitude": page.longitude,
                "address": page.address,
            },
            "openingHours": page.opening_hours or [],
            "createdAt": page.created_at.isoformat() if page.created_at else None,
        }
        if include_catalog:
            response["services"] = [cls.service_to_response(s) for s in page.services]
            response["categories"] = [{"id": c.id, "name": c.name} for c in page.categories]
            response["deliverySettings"] = page.delivery_settings
        return response
