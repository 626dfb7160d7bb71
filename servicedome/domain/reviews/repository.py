"""Review repository - Append-only page reviews"""

from sqlalchemy.orm import Session, joinedload

from ...models import BusinessPage, Review


class ReviewRepository:
    @staticmethod
    def create(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        return review

    @staticmethod
    def list_for_page(db: Session, page_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.page_id == page_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def list_for_vendor(db: Session, vendor_id: int) -> list[Review]:
        return (
            db.query(Review)
            .join(BusinessPage, Review.page_id == BusinessPage.id)
            .options(joinedload(Review.customer))
            .filter(BusinessPage.vendor_id == vendor_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
