from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional, Tuple
from slugify import slugify
import structlog

from storefront.core.config import settings
from storefront.core.exceptions import DuplicateSku, DuplicateSlug, ProductNotFound
from storefront.models.product import Product
from storefront.query import QueryBuilder, Scope
from storefront.schemas.product import ProductCreate, ProductResponse
from storefront.services.category_service import CategoryService

logger = structlog.get_logger()


class ProductService:

    @staticmethod
    def get_product(db: Session, product_id: int, include_deleted: bool = False) -> Product:
        query = db.query(Product).filter(Product.id == product_id)
        if not include_deleted:
            query = query.filter(Product.deleted_at.is_(None))
        product = query.first()
        if not product:
            raise ProductNotFound(product_id)
        return product

    @staticmethod
    def get_product_by_slug(db: Session, slug: str) -> Product:
        product = db.query(Product).filter(
            Product.slug == slug,
            Product.deleted_at.is_(None),
        ).first()
        if not product:
            raise ProductNotFound(slug)
        return product

    @staticmethod
    def create_product(db: Session, data: ProductCreate) -> Product:
        """Create a product under an existing category. Slug and SKU must be unused."""
        CategoryService.get_category(db, data.category_id)

        slug = slugify(data.slug or data.name)
        if db.query(Product.id).filter(Product.slug == slug).first() is not None:
            raise DuplicateSlug("Product", slug)
        if db.query(Product.id).filter(Product.sku == data.sku).first() is not None:
            raise DuplicateSku(data.sku)

        product = Product(
            category_id=data.category_id,
            name=data.name,
            slug=slug,
            sku=data.sku,
            description=data.description,
            short_description=data.short_description,
            price=data.price,
            compare_price=data.compare_price,
            quantity=data.quantity,
            status=data.status,
            attributes=data.attributes,
            tags=data.tags,
        )
        db.add(product)
        db.commit()
        db.refresh(product)

        logger.info("product_created", product_id=product.id, sku=product.sku, category_id=product.category_id)
        return product

    @staticmethod
    def list_products(
        db: Session,
        *scopes: Scope,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Tuple[List[Product], int]:
        """Apply scopes and return one page of products with the total match count."""
        per_page = min(per_page or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        return QueryBuilder(Product).apply(*scopes).paginate(db, page=page, per_page=per_page)

    @staticmethod
    def soft_delete_product(db: Session, product_id: int) -> Product:
        product = ProductService.get_product(db, product_id)
        product.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(product)
        logger.info("product_soft_deleted", product_id=product.id)
        return product

    @staticmethod
    def restore_product(db: Session, product_id: int) -> Product:
        product = ProductService.get_product(db, product_id, include_deleted=True)
        product.deleted_at = None
        db.commit()
        db.refresh(product)
        logger.info("product_restored", product_id=product.id)
        return product

    @staticmethod
    def increment_views(db: Session, product: Product) -> Product:
        """Bump the view counter in the database, not from the in-memory value."""
        db.query(Product).filter(Product.id == product.id).update(
            {Product.views_count: Product.views_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(product)
        logger.debug("product_views_incremented", product_id=product.id, views_count=product.views_count)
        return product

    @staticmethod
    def decrement_quantity(db: Session, product: Product, amount: int = 1) -> bool:
        """
        Sell ``amount`` units.

        One conditional UPDATE lowers quantity and raises sales_count together,
        and only while enough stock remains, so concurrent callers cannot
        oversell.

        Returns:
            bool: True when stock was taken, False when there was not enough
        """
        if amount < 1:
            raise ValueError("amount must be at least 1")

        updated = (
            db.query(Product)
            .filter(
                Product.id == product.id,
                Product.quantity >= amount,
                Product.deleted_at.is_(None),
            )
            .update(
                {
                    Product.quantity: Product.quantity - amount,
                    Product.sales_count: Product.sales_count + amount,
                },
                synchronize_session=False,
            )
        )

        if updated != 1:
            db.refresh(product)
            logger.info(
                "product_stock_insufficient",
                product_id=product.id,
                requested=amount,
                available=product.quantity,
            )
            return False

        db.commit()
        db.refresh(product)
        logger.info(
            "product_stock_decremented",
            product_id=product.id,
            amount=amount,
            quantity=product.quantity,
            sales_count=product.sales_count,
        )
        return True

    @staticmethod
    def to_response(product: Product, now: Optional[datetime] = None) -> ProductResponse:
        return ProductResponse.from_product(product, now or datetime.utcnow())
