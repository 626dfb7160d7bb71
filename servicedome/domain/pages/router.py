"""Business page router - FastAPI endpoints for pages, services, categories and delivery"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_account, require_vendor
from ...database import get_db
from ...models import Account
from .schemas import (
    CategoryCreate,
    DeliverySettings,
    PageCreate,
    PageUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from .service import PageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pages", tags=["Business Pages"])


def get_page_service(db: Session = Depends(get_db)) -> PageService:
    """Dependency injection for PageService"""
    return PageService(db)


# ============================================================================
# PAGES
# ============================================================================


@router.post("", status_code=201)
async def create_page(
    data: PageCreate,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    """Create a business page (subject to the vendor's plan limit)"""
    page = service.create_page(current_account, data)
    return {"success": True, "page": service.to_response(page)}


@router.get("")
async def list_pages(
    category: Optional[str] = Query(None),
    service: PageService = Depends(get_page_service),
):
    """Public directory of business pages, optionally filtered by category name or slug"""
    pages = service.list_pages(category)
    return {"success": True, "pages": [service.to_response(p) for p in pages]}


@router.get("/mine")
async def list_my_pages(
    current_account: Account = Depends(require_vendor),
    service: PageService = Depends(get_page_service),
):
    pages = service.list_vendor_pages(current_account.id)
    return {"success": True, "pages": [service.to_response(p) for p in pages]}


@router.get("/{page_id}")
async def get_page(page_id: int, service: PageService = Depends(get_page_service)):
    """Public page with its services and review summary"""
    return {"success": True, "page": service.get_page(page_id)}


@router.put("/{page_id}")
async def update_page(
    page_id: int,
    data: PageUpdate,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    page = service.update_page(page_id, current_account.id, data)
    return {"success": True, "page": service.to_response(page)}


@router.delete("/{page_id}")
async def delete_page(
    page_id: int,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    service.delete_page(page_id, current_account.id)
    return {"success": True, "message": "Business page deleted"}


# ============================================================================
# SERVICE CATALOG
# ============================================================================


@router.post("/{page_id}/services", status_code=201)
async def add_service(
    page_id: int,
    data: ServiceCreate,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    offering = service.add_service(page_id, current_account.id, data)
    return {"success": True, "service": service.service_to_response(offering)}


@router.get("/{page_id}/services")
async def list_services(page_id: int, service: PageService = Depends(get_page_service)):
    offerings = service.list_services(page_id)
    return {"success": True, "services": [service.service_to_response(s) for s in offerings]}


@router.put("/{page_id}/services/{service_id}")
async def update_service(
    page_id: int,
    service_id: int,
    data: ServiceUpdate,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    offering = service.update_service(page_id, service_id, current_account.id, data)
    return {"success": True, "service": service.service_to_response(offering)}


@router.delete("/{page_id}/services/{service_id}")
async def delete_service(
    page_id: int,
    service_id: int,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    service.delete_service(page_id, service_id, current_account.id)
    return {"success": True, "message": "Service deleted"}


@router.post("/{page_id}/categories", status_code=201)
async def create_category(
    page_id: int,
    data: CategoryCreate,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    category = service.create_category(page_id, current_account.id, data)
    return {"success": True, "category": {"id": category.id, "name": category.name}}


@router.get("/{page_id}/categories")
async def list_categories(page_id: int, service: PageService = Depends(get_page_service)):
    categories = service.list_categories(page_id)
    return {"success": True, "categories": [{"id": c.id, "name": c.name} for c in categories]}


# ============================================================================
# DELIVERY SETTINGS
# ============================================================================


@router.put("/{page_id}/delivery-settings")
async def set_delivery_settings(
    page_id: int,
    data: DeliverySettings,
    current_account: Account = Depends(get_current_account),
    service: PageService = Depends(get_page_service),
):
    settings = service.set_delivery_settings(page_id, current_account.id, data)
    return {"success": True, "deliverySettings": settings}


@router.get("/{page_id}/delivery-settings")
async def get_delivery_settings(page_id: int, service: PageService = Depends(get_page_service)):
    return {"success": True, "deliverySettings": service.get_delivery_settings(page_id)}
