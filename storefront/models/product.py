from sqlalchemy import (
    Column, Integer, String, Numeric, ForeignKey, DateTime, Text, Enum, JSON, Index, CheckConstraint, and_, func,
)
from sqlalchemy.orm import relationship, object_session
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
import enum

from storefront.core.config import settings
from storefront.db.base_class import Base
from storefront.models.review import Review, ReviewStatus


class ProductStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    OUT_OF_STOCK = "out_of_stock"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    short_description = Column(Text, nullable=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)
    compare_price = Column(Numeric(10, 2), nullable=True)

    # Stock & Status
    quantity = Column(Integer, default=0, nullable=False)
    sku = Column(String(100), unique=True, nullable=False)
    status = Column(
        Enum(ProductStatus, name="product_status", values_callable=lambda e: [m.value for m in e]),
        default=ProductStatus.DRAFT,
        nullable=False,
    )

    # Free-form data (size, color, ...)
    attributes = Column(JSON(none_as_null=True), nullable=True)
    tags = Column(JSON(none_as_null=True), nullable=True)

    # Counters
    views_count = Column(Integer, default=0, nullable=False)
    sales_count = Column(Integer, default=0, nullable=False)

    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    category = relationship("Category")
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    approved_reviews = relationship(
        "Review",
        primaryjoin=lambda: and_(Product.id == Review.product_id, Review.status == ReviewStatus.APPROVED),
        viewonly=True,
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("compare_price IS NULL OR compare_price >= 0", name="ck_products_compare_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("views_count >= 0", name="ck_products_views_non_negative"),
        CheckConstraint("sales_count >= 0", name="ck_products_sales_non_negative"),
        Index("idx_product_status_category", "status", "category_id"),
        Index("idx_product_price", "price"),
        Index("idx_product_sku", "sku"),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r}>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    # Ratings

    def _approved_rating_stats(self) -> Tuple[float, int]:
        """(average, count) of approved ratings, aggregated in the database when attached."""
        db = object_session(self)
        if db is None or self.id is None:
            ratings = [review.rating for review in self.approved_reviews]
            return (sum(ratings) / len(ratings) if ratings else 0.0), len(ratings)

        average, count = db.query(func.avg(Review.rating), func.count(Review.id)).filter(
            Review.product_id == self.id,
            Review.status == ReviewStatus.APPROVED,
        ).one()
        return float(average or 0), count

    @property
    def average_rating(self) -> float:
        return self._approved_rating_stats()[0]

    @property
    def reviews_count(self) -> int:
        return self._approved_rating_stats()[1]

    # Pricing

    @property
    def has_discount(self) -> bool:
        return self.compare_price is not None and self.compare_price > self.price

    @property
    def discount_percentage(self) -> int:
        if not self.has_discount:
            return 0
        compare_price = Decimal(self.compare_price)
        ratio = (compare_price - Decimal(self.price)) / compare_price * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @property
    def min_price(self) -> Decimal:
        return self.price

    @property
    def max_price(self) -> Decimal:
        return self.price

    # Stock

    @property
    def in_stock(self) -> bool:
        return (self.quantity or 0) > 0

    def is_new(self, now: datetime, days: Optional[int] = None) -> bool:
        """True while ``now`` is less than ``days`` (default NEW_PRODUCT_DAYS) after creation."""
        if self.created_at is None:
            return False
        window = timedelta(days=days or settings.NEW_PRODUCT_DAYS)
        return now - self.created_at < window
