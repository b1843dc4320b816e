from sqlalchemy.orm import Session
from typing import List
import structlog

from storefront.core.exceptions import DuplicateReview, ReviewNotFound
from storefront.models.review import Review
from storefront.query import QueryBuilder, Scope, ForProduct, ApprovedReviews, MostRecent
from storefront.schemas.review import ReviewCreate
from storefront.services.product_service import ProductService

logger = structlog.get_logger()


class ReviewService:

    @staticmethod
    def user_has_reviewed(db: Session, user_id: int, product_id: int) -> bool:
        """True if any review by this user exists for the product, whatever its status."""
        return db.query(Review.id).filter(
            Review.user_id == user_id,
            Review.product_id == product_id,
        ).first() is not None

    @staticmethod
    def create_review(db: Session, user_id: int, review_data: ReviewCreate, verified_purchase: bool = False) -> Review:
        """
        Create a pending review.

        One review per user per product is checked here rather than by a
        table constraint, so two simultaneous submissions can both pass.
        """
        ProductService.get_product(db, review_data.product_id)

        if ReviewService.user_has_reviewed(db, user_id, review_data.product_id):
            raise DuplicateReview(user_id, review_data.product_id)

        review = Review(
            user_id=user_id,
            product_id=review_data.product_id,
            rating=review_data.rating,
            comment=review_data.comment,
            pros=review_data.pros,
            cons=review_data.cons,
            verified_purchase=verified_purchase,
        )
        db.add(review)
        db.commit()
        db.refresh(review)

        logger.info("review_created", review_id=review.id, user_id=user_id, product_id=review.product_id)
        return review

    @staticmethod
    def get_review(db: Session, review_id: int) -> Review:
        review = db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise ReviewNotFound(review_id)
        return review

    @staticmethod
    def approve_review(db: Session, review_id: int) -> Review:
        review = ReviewService.get_review(db, review_id)
        if review.approve():
            db.commit()
            db.refresh(review)
            logger.info("review_approved", review_id=review.id, product_id=review.product_id)
        return review

    @staticmethod
    def reject_review(db: Session, review_id: int) -> Review:
        review = ReviewService.get_review(db, review_id)
        if review.reject():
            db.commit()
            db.refresh(review)
            logger.info("review_rejected", review_id=review.id, product_id=review.product_id)
        return review

    @staticmethod
    def mark_verified(db: Session, review_id: int) -> Review:
        review = ReviewService.get_review(db, review_id)
        if review.mark_as_verified():
            db.commit()
            db.refresh(review)
            logger.info("review_marked_verified", review_id=review.id)
        return review

    @staticmethod
    def list_reviews(db: Session, *scopes: Scope) -> List[Review]:
        return QueryBuilder(Review).apply(*scopes).all(db)

    @staticmethod
    def list_product_reviews(db: Session, product_id: int) -> List[Review]:
        """Approved reviews of a product, newest first."""
        return ReviewService.list_reviews(db, ForProduct(product_id), ApprovedReviews(), MostRecent())
