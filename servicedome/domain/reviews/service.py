"""Review service - Page reviews and rating summaries"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...cache import invalidate_page_cache
from ...errors import NotFound, ValidationError
from ...models import Review
from ...security_utils import sanitize_text
from ..pages.repository import PageRepository
from .repository import ReviewRepository

logger = logging.getLogger(__name__)


def summarize(reviews: list[Review]) -> dict:
    if not reviews:
        return {"count": 0, "averageRating": None}
    return {
        "count": len(reviews),
        "averageRating": round(sum(r.rating for r in reviews) / len(reviews), 2),
    }


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def add_review(
        self, page_id: int, customer_id: int, rating: int, comment: Optional[str] = None
    ) -> Review:
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if not PageRepository.get_by_id(self.db, page_id):
            raise NotFound("Business page not found")

        review = self.repo.create(
            self.db,
            page_id=page_id,
            customer_id=customer_id,
            rating=rating,
            comment=sanitize_text(comment, 2000) or None,
        )
        self.db.commit()
        self.db.refresh(review)
        invalidate_page_cache(page_id)
        logger.info(f"⭐ Review {review.id} ({rating}/5) added to page {page_id}")
        return review

    def list_reviews(self, page_id: int) -> tuple[list[Review], dict]:
        """Newest first, with count and average rating"""
        if not PageRepository.get_by_id(self.db, page_id):
            raise NotFound("Business page not found")
        reviews = self.repo.list_for_page(self.db, page_id)
        return reviews, summarize(reviews)

    def list_vendor_reviews(self, vendor_id: int) -> tuple[list[Review], dict]:
        reviews = self.repo.list_for_vendor(self.db, vendor_id)
        return reviews, summarize(reviews)

    @staticmethod
    def to_response(review: Review) -> dict:
        return {
            "id": review.id,
            "pageId": review.page_id,
            "customerId": review.customer_id,
            "customerName": review.customer.name if review.customer else None,
            "rating": review.rating,
            "comment": review.comment,
            "createdAt": review.created_at.isoformat() if review.created_at else None,
        }
