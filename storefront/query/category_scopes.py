from dataclasses import dataclass

from storefront.models.category import Category
from storefront.query.builder import Filter, Ordering


@dataclass(frozen=True)
class ActiveCategories(Filter):
    model = Category

    def clause(self):
        return Category.is_active.is_(True)


@dataclass(frozen=True)
class RootCategories(Filter):
    model = Category

    def clause(self):
        return Category.parent_id.is_(None)


@dataclass(frozen=True)
class ChildrenOf(Filter):
    parent_id: int
    model = Category

    def clause(self):
        return Category.parent_id == self.parent_id


@dataclass(frozen=True)
class CategoryOrder(Ordering):
    """Sort order, then name."""
    model = Category
    key = "sort_order"

    def columns(self):
        return [Category.sort_order.asc(), Category.name.asc()]
