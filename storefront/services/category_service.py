from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from slugify import slugify
import structlog

from storefront.core.config import settings
from storefront.core.exceptions import CategoryNotFound, CategoryCycleError, CategoryDepthExceeded, DuplicateSlug
from storefront.models.category import Category
from storefront.query import QueryBuilder, Scope
from storefront.schemas.category import CategoryCreate, CategoryUpdate

logger = structlog.get_logger()


class CategoryService:

    @staticmethod
    def get_category(db: Session, category_id: int, include_deleted: bool = False) -> Category:
        """Fetch a category by id; soft-deleted rows count as missing unless asked for."""
        query = db.query(Category).filter(Category.id == category_id)
        if not include_deleted:
            query = query.filter(Category.deleted_at.is_(None))
        category = query.first()
        if not category:
            raise CategoryNotFound(category_id)
        return category

    @staticmethod
    def get_category_by_slug(db: Session, slug: str) -> Category:
        category = db.query(Category).filter(
            Category.slug == slug,
            Category.deleted_at.is_(None),
        ).first()
        if not category:
            raise CategoryNotFound(slug)
        return category

    @staticmethod
    def list_categories(db: Session, *scopes: Scope) -> List[Category]:
        return QueryBuilder(Category).apply(*scopes).all(db)

    @staticmethod
    def _ensure_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Category.id).filter(Category.slug == slug)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        if query.first() is not None:
            raise DuplicateSlug("Category", slug)

    @staticmethod
    def _ensure_acyclic_parent(db: Session, category: Category, parent_id: int) -> None:
        """Walk the stored parent ids upwards, soft-deleted rows included."""
        CategoryService.get_category(db, parent_id)
        walked: List[int] = []
        node_id: Optional[int] = parent_id
        while node_id is not None:
            if node_id == category.id:
                raise CategoryCycleError(category.id, [category.id] + walked[::-1] + [category.id])
            if node_id in walked:
                raise CategoryCycleError(node_id, walked[walked.index(node_id):] + [node_id])
            if len(walked) >= settings.CATEGORY_MAX_DEPTH:
                raise CategoryDepthExceeded(parent_id, settings.CATEGORY_MAX_DEPTH)
            walked.append(node_id)
            node_id = db.query(Category.parent_id).filter(Category.id == node_id).scalar()

    @staticmethod
    def create_category(db: Session, data: CategoryCreate) -> Category:
        """Create a category; the slug is derived from the name when omitted."""
        slug = slugify(data.slug or data.name)
        CategoryService._ensure_slug_free(db, slug)

        if data.parent_id is not None:
            CategoryService.get_category(db, data.parent_id)

        category = Category(
            name=data.name,
            slug=slug,
            description=data.description,
            parent_id=data.parent_id,
            is_active=data.is_active,
            sort_order=data.sort_order,
        )
        db.add(category)
        db.commit()
        db.refresh(category)

        logger.info("category_created", category_id=category.id, slug=category.slug, parent_id=category.parent_id)
        return category

    @staticmethod
    def update_category(db: Session, category_id: int, data: CategoryUpdate) -> Category:
        """Apply a partial update. Re-parenting under one's own descendant is refused."""
        category = CategoryService.get_category(db, category_id)
        update_data = data.model_dump(exclude_unset=True)
        # Required columns: an explicit None means "leave as is"
        for key in ("name", "slug", "is_active", "sort_order"):
            if key in update_data and update_data[key] is None:
                update_data.pop(key)

        if "slug" in update_data:
            update_data["slug"] = slugify(update_data["slug"])
            CategoryService._ensure_slug_free(db, update_data["slug"], exclude_id=category.id)

        if update_data.get("parent_id") is not None:
            CategoryService._ensure_acyclic_parent(db, category, update_data["parent_id"])

        for key, value in update_data.items():
            setattr(category, key, value)

        db.commit()
        db.refresh(category)
        logger.info("category_updated", category_id=category.id, fields=sorted(update_data))
        return category

    @staticmethod
    def soft_delete_category(db: Session, category_id: int) -> Category:
        category = CategoryService.get_category(db, category_id)
        category.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(category)
        logger.info("category_soft_deleted", category_id=category.id)
        return category

    @staticmethod
    def restore_category(db: Session, category_id: int) -> Category:
        category = CategoryService.get_category(db, category_id, include_deleted=True)
        category.deleted_at = None
        db.commit()
        db.refresh(category)
        logger.info("category_restored", category_id=category.id)
        return category

    @staticmethod
    def get_breadcrumb(db: Session, category_id: int) -> List[Category]:
        """Root-to-leaf path for breadcrumb display."""
        return CategoryService.get_category(db, category_id).ancestor_path()
