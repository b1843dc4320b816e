from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Boolean, Enum, JSON, Index
from sqlalchemy.orm import relationship, validates
from datetime import datetime
import enum

from storefront.core.exceptions import InvalidReviewTransition
from storefront.db.base_class import Base

STAR_FILLED = "★"
STAR_EMPTY = "☆"
MAX_STARS = 5


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    rating = Column(Integer, nullable=False)  # 1-5 stars, checked on input only
    comment = Column(Text, nullable=True)
    pros = Column(JSON, nullable=True)
    cons = Column(JSON, nullable=True)
    status = Column(
        Enum(ReviewStatus, name="review_status", values_callable=lambda e: [m.value for m in e]),
        default=ReviewStatus.PENDING,
        nullable=False,
    )
    verified_purchase = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="reviews")
    product = relationship("Product", back_populates="reviews")
    category = relationship(
        "Category",
        secondary="products",
        primaryjoin="Review.product_id == Product.id",
        secondaryjoin="Product.category_id == Category.id",
        viewonly=True,
        uselist=False,
    )

    # One review per user per product is checked by ReviewService, not the schema.
    __table_args__ = (
        Index("idx_review_user_product", "user_id", "product_id"),
        Index("idx_review_product_status", "product_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Review id={self.id} product_id={self.product_id} status={self.status}>"

    @validates("verified_purchase")
    def _validate_verified_purchase(self, key, value):
        if self.verified_purchase and not value:
            raise ValueError("verified_purchase cannot be unset once granted")
        return value

    @property
    def is_approved(self) -> bool:
        return self.status == ReviewStatus.APPROVED

    @property
    def is_pending(self) -> bool:
        return self.status == ReviewStatus.PENDING

    @property
    def is_rejected(self) -> bool:
        return self.status == ReviewStatus.REJECTED

    @property
    def rating_stars(self) -> str:
        filled = max(0, min(MAX_STARS, self.rating or 0))
        return STAR_FILLED * filled + STAR_EMPTY * (MAX_STARS - filled)

    def _transition(self, target: ReviewStatus) -> bool:
        # Unsaved reviews carry no status until flush; treat them as pending.
        current = ReviewStatus(self.status) if self.status else ReviewStatus.PENDING
        if current == target:
            return False
        if current != ReviewStatus.PENDING:
            raise InvalidReviewTransition(current.value, target.value)
        self.status = target
        return True

    def approve(self) -> bool:
        """Move a pending review to approved. Returns False if it already was."""
        return self._transition(ReviewStatus.APPROVED)

    def reject(self) -> bool:
        """Move a pending review to rejected. Returns False if it already was."""
        return self._transition(ReviewStatus.REJECTED)

    def mark_as_verified(self) -> bool:
        if self.verified_purchase:
            return False
        self.verified_purchase = True
        return True
