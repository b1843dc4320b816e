from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.product import Product, ProductStatus
from storefront.schemas.category import CategoryResponse


class ProductCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    short_description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.DRAFT
    attributes: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def normalize(self):
        self.sku = self.sku.strip()
        self.tags = [tag.strip() for tag in self.tags if tag and tag.strip()]
        return self


class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    sku: str
    description: str
    short_description: Optional[str]
    price: Decimal
    compare_price: Optional[Decimal]
    quantity: int
    status: ProductStatus
    attributes: Optional[Dict[str, Any]]
    tags: List[str]
    views_count: int
    sales_count: int
    created_at: Optional[datetime]
    category: CategoryResponse

    # Derived
    average_rating: float
    reviews_count: int
    has_discount: bool
    discount_percentage: int
    in_stock: bool
    is_new: bool

    @classmethod
    def from_product(cls, product: Product, now: datetime) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            description=product.description,
            short_description=product.short_description,
            price=product.price,
            compare_price=product.compare_price,
            quantity=product.quantity,
            status=product.status,
            attributes=product.attributes,
            tags=product.tags or [],
            views_count=product.views_count,
            sales_count=product.sales_count,
            created_at=product.created_at,
            category=CategoryResponse.model_validate(product.category),
            average_rating=product.average_rating,
            reviews_count=product.reviews_count,
            has_discount=product.has_discount,
            discount_percentage=product.discount_percentage,
            in_stock=product.in_stock,
            is_new=product.is_new(now),
        )
