"""Business page repository - Database operations for pages and their catalog"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...models import BusinessPage, PageCategory, Review, ServiceOffering


class PageRepository:
    """Repository for business page database operations"""

    @staticmethod
    def get_by_id(db: Session, page_id: int) -> Optional[BusinessPage]:
        return db.query(BusinessPage).filter(BusinessPage.id == page_id).first()

    @staticmethod
    def get_with_catalog(db: Session, page_id: int) -> Optional[BusinessPage]:
        return (
            db.query(BusinessPage)
            .options(
                selectinload(BusinessPage.services).selectinload(ServiceOffering.category),
                selectinload(BusinessPage.categories),
            )
            .filter(BusinessPage.id == page_id)
            .first()
        )

    @staticmethod
    def list_pages(db: Session, category: Optional[str] = None) -> list[BusinessPage]:
        query = db.query(BusinessPage)
        if category:
            needle = category.strip().lower()
            query = query.filter(
                or_(
                    func.lower(BusinessPage.category_name) == needle,
                    BusinessPage.category_slug == needle,
                )
            )
        return query.order_by(BusinessPage.created_at.desc(), BusinessPage.id.desc()).all()

    @staticmethod
    def list_by_vendor(db: Session, vendor_id: int) -> list[BusinessPage]:
        return (
            db.query(BusinessPage)
            .filter(BusinessPage.vendor_id == vendor_id)
            .order_by(BusinessPage.id)
            .all()
        )

    @staticmethod
    def page_ids_for_vendor(db: Session, vendor_id: int) -> list[int]:
        rows = db.query(BusinessPage.id).filter(BusinessPage.vendor_id == vendor_id).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_service(db: Session, page_id: int, service_id: int) -> Optional[ServiceOffering]:
        return (
            db.query(ServiceOffering)
            .filter(ServiceOffering.id == service_id, ServiceOffering.page_id == page_id)
            .first()
        )

    @staticmethod
    def list_services(db: Session, page_id: int) -> list[ServiceOffering]:
        return (
            db.query(ServiceOffering)
            .options(selectinload(ServiceOffering.category))
            .filter(ServiceOffering.page_id == page_id)
            .order_by(ServiceOffering.id)
            .all()
        )

    @staticmethod
    def get_category(db: Session, page_id: int, category_id: int) -> Optional[PageCategory]:
        return (
            db.query(PageCategory)
            .filter(PageCategory.id == category_id, PageCategory.page_id == page_id)
            .first()
        )

    @staticmethod
    def list_categories(db: Session, page_id: int) -> list[PageCategory]:
        return (
            db.query(PageCategory)
            .filter(PageCategory.page_id == page_id)
            .order_by(PageCategory.id)
            .all()
        )

    @staticmethod
    def review_summary(db: Session, page_id: int) -> dict:
        count, average = (
            db.query(func.count(Review.id), func.avg(Review.rating))
            .filter(Review.page_id == page_id)
            .one()
        )
        return {
            "count": count or 0,
            "averageRating": round(float(average), 2) if average is not None else None,
        }
