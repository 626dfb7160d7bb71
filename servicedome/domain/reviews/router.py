"""Review router - Customer reviews of business pages"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_customer
from ...database import get_db
from ...models import Account
from .schemas import ReviewCreate
from .service import ReviewService

router = APIRouter(tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("/pages/{page_id}/reviews", status_code=201)
async def add_review(
    page_id: int,
    data: ReviewCreate,
    current_account: Account = Depends(require_customer),
    service: ReviewService = Depends(get_review_service),
):
    review = service.add_review(page_id, current_account.id, data.rating, data.comment)
    return {"success": True, "review": service.to_response(review)}


@router.get("/pages/{page_id}/reviews")
async def list_reviews(page_id: int, service: ReviewService = Depends(get_review_service)):
    reviews, summary = service.list_reviews(page_id)
    return {"success": True, "reviews": [service.to_response(r) for r in reviews], **summary}


@router.get("/vendors/{vendor_id}/reviews")
async def list_vendor_reviews(vendor_id: int, service: ReviewService = Depends(get_review_service)):
    reviews, summary = service.list_vendor_reviews(vendor_id)
    return {"success": True, "reviews": [service.to_response(r) for r in reviews], **summary}
