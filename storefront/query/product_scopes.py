from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Query

from storefront.core.exceptions import ScopeConflict
from storefront.models.product import Product, ProductStatus
from storefront.models.review import Review, ReviewStatus
from storefront.query.builder import Filter, Ordering, like_pattern

Number = Union[int, float, str, Decimal]


def _to_decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


# Filters

@dataclass(frozen=True)
class ActiveProducts(Filter):
    model = Product

    def clause(self):
        return Product.status == ProductStatus.ACTIVE


@dataclass(frozen=True)
class InStock(Filter):
    model = Product

    def clause(self):
        return Product.quantity > 0


@dataclass(frozen=True)
class OnSale(Filter):
    model = Product

    def clause(self):
        return and_(Product.compare_price.isnot(None), Product.compare_price > Product.price)


@dataclass(frozen=True)
class PriceBetween(Filter):
    """Inclusive on both ends."""
    minimum: Number
    maximum: Number
    model = Product

    def __post_init__(self):
        if _to_decimal(self.minimum) > _to_decimal(self.maximum):
            raise ScopeConflict(f"Price range {self.minimum}..{self.maximum} is empty")

    def clause(self):
        return Product.price.between(_to_decimal(self.minimum), _to_decimal(self.maximum))


@dataclass(frozen=True)
class InCategory(Filter):
    category_id: int
    model = Product

    def clause(self):
        return Product.category_id == self.category_id


# Table-valued functions that unnest a JSON array into one row per element
TAG_ELEMENT_FUNCTIONS = {
    "sqlite": "json_each",
    "postgresql": "json_array_elements_text",
}


def _tag_matches(pattern: str, dialect_name: str):
    """EXISTS over the elements of ``Product.tags``; the JSON text itself is never matched."""
    unnest = getattr(func, TAG_ELEMENT_FUNCTIONS.get(dialect_name, "json_each"))
    tags = unnest(Product.tags).table_valued("value").alias("product_tag")
    return select(tags.c.value).where(tags.c.value.ilike(pattern, escape="\\")).exists()


@dataclass(frozen=True)
class Search(Filter):
    """
    Case-insensitive substring match on name, description, sku and tags.

    A tag matches when one of its elements contains the term. Element
    matching is supported on SQLite and PostgreSQL.
    """
    term: str
    model = Product

    def clause(self):
        return self.clause_for("sqlite")

    def clause_for(self, dialect_name: str):
        term = (self.term or "").strip()
        if not term:
            return None
        pattern = like_pattern(term)
        return or_(
            Product.name.ilike(pattern, escape="\\"),
            Product.description.ilike(pattern, escape="\\"),
            Product.sku.ilike(pattern, escape="\\"),
            _tag_matches(pattern, dialect_name),
        )


# Orderings

@dataclass(frozen=True)
class PriceLowToHigh(Ordering):
    model = Product
    key = "price"

    def columns(self):
        return [Product.price.asc()]


@dataclass(frozen=True)
class PriceHighToLow(Ordering):
    model = Product
    key = "price"

    def columns(self):
        return [Product.price.desc()]


@dataclass(frozen=True)
class Newest(Ordering):
    model = Product
    key = "created_at"

    def columns(self):
        return [Product.created_at.desc()]


@dataclass(frozen=True)
class BestSelling(Ordering):
    model = Product
    key = "sales_count"

    def columns(self):
        return [Product.sales_count.desc()]


@dataclass(frozen=True)
class MostViewed(Ordering):
    model = Product
    key = "views_count"

    def columns(self):
        return [Product.views_count.desc()]


@dataclass(frozen=True)
class HighestRated(Ordering):
    """
    Average approved rating, highest first.

    Products without approved reviews rank as rating 0. Ratings are at
    least 1, so those products land after every rated product.
    """
    model = Product
    key = "average_rating"

    def _ratings(self):
        return (
            select(Review.product_id.label("product_id"), func.avg(Review.rating).label("avg_rating"))
            .where(Review.status == ReviewStatus.APPROVED)
            .group_by(Review.product_id)
            .subquery("approved_ratings")
        )

    def apply(self, query: Query) -> Query:
        ratings = self._ratings()
        return query.outerjoin(ratings, ratings.c.product_id == Product.id).order_by(
            func.coalesce(ratings.c.avg_rating, 0).desc()
        )
