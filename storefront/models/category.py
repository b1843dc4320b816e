from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Text, Index
from sqlalchemy.orm import relationship, object_session
from datetime import datetime
from typing import List, Optional
import structlog

from storefront.core.config import settings
from storefront.core.exceptions import CategoryCycleError, CategoryDepthExceeded
from storefront.db.base_class import Base
from storefront.models.product import Product, ProductStatus

logger = structlog.get_logger()


class Category(Base):
    """Node of the catalog taxonomy. Parents are optional; roots have none."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships. Reads skip soft-deleted rows; writes go through the
    # foreign key columns and the database cascades.
    parent = relationship(
        "Category",
        primaryjoin="and_(foreign(Category.parent_id) == remote(Category.id), remote(Category.deleted_at).is_(None))",
        viewonly=True,
    )
    children = relationship(
        "Category",
        primaryjoin="and_(Category.id == remote(foreign(Category.parent_id)), remote(Category.deleted_at).is_(None))",
        order_by="Category.id",
        viewonly=True,
    )
    products = relationship(
        "Product",
        primaryjoin="and_(Category.id == Product.category_id, Product.deleted_at.is_(None))",
        order_by="Product.id",
        viewonly=True,
    )
    reviews = relationship(
        "Review",
        secondary="products",
        primaryjoin="and_(Category.id == Product.category_id, Product.deleted_at.is_(None))",
        secondaryjoin="Product.id == Review.product_id",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_category_parent_active", "parent_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} slug={self.slug!r}>"

    @property
    def is_root(self) -> bool:
        return self.parent_id is None and self.parent is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def ancestor_path(self, max_depth: Optional[int] = None) -> List["Category"]:
        """
        Categories from the root down to and including this one.

        The walk keeps a visited set and a depth bound so a parent chain
        that loops (A -> B -> A) raises instead of spinning forever. A
        soft-deleted parent is not followed, so the path starts below it.

        Raises:
            CategoryCycleError: a category appears twice in the chain
            CategoryDepthExceeded: the chain is longer than ``max_depth``
        """
        limit = max_depth or settings.CATEGORY_MAX_DEPTH
        path: List[Category] = []
        walked: List[Category] = []
        seen = set()

        node: Optional[Category] = self
        while node is not None:
            if id(node) in seen:
                chain = [item.id for item in walked] + [node.id]
                logger.error("category_cycle_detected", category_id=node.id, chain=chain)
                raise CategoryCycleError(node.id, chain)
            if len(path) >= limit:
                logger.error("category_depth_exceeded", category_id=self.id, max_depth=limit)
                raise CategoryDepthExceeded(self.id, limit)
            seen.add(id(node))
            walked.append(node)
            path.insert(0, node)
            node = node.parent

        return path

    @property
    def path(self) -> List["Category"]:
        return self.ancestor_path()

    @property
    def breadcrumb(self) -> str:
        return " > ".join(category.name for category in self.ancestor_path())

    @property
    def depth(self) -> int:
        """0 for a root category."""
        return len(self.ancestor_path()) - 1

    def _active_products_query(self):
        db = object_session(self)
        if db is None:
            return None
        return db.query(Product.id).filter(
            Product.category_id == self.id,
            Product.status == ProductStatus.ACTIVE,
            Product.deleted_at.is_(None),
        )

    def has_active_products(self) -> bool:
        query = self._active_products_query()
        if query is None:
            return any(
                p.status == ProductStatus.ACTIVE and p.deleted_at is None for p in self.products
            )
        return query.first() is not None

    def active_products_count(self) -> int:
        query = self._active_products_query()
        if query is None:
            return sum(
                1 for p in self.products if p.status == ProductStatus.ACTIVE and p.deleted_at is None
            )
        return query.count()
