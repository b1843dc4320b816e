from http import HTTPStatus
from typing import Any, List, Optional


class CatalogError(Exception):
    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


# Not found

class CategoryNotFound(CatalogError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, category_id: Any):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class ProductNotFound(CatalogError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, product_id: Any):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class ReviewNotFound(CatalogError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, review_id: Any):
        super().__init__(f"Review {review_id} not found")
        self.review_id = review_id


# Constraint violations

class DuplicateSlug(CatalogError):
    status_code = HTTPStatus.CONFLICT

    def __init__(self, kind: str, slug: str):
        super().__init__(f"{kind} slug '{slug}' already exists")
        self.slug = slug


class DuplicateSku(CatalogError):
    status_code = HTTPStatus.CONFLICT

    def __init__(self, sku: str):
        super().__init__(f"Product SKU '{sku}' already exists")
        self.sku = sku


class DuplicateReview(CatalogError):
    status_code = HTTPStatus.CONFLICT

    def __init__(self, user_id: int, product_id: int):
        super().__init__("You have already reviewed this product")
        self.user_id = user_id
        self.product_id = product_id


class InvalidReviewTransition(CatalogError):
    status_code = HTTPStatus.CONFLICT

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move review from '{current}' to '{target}'")
        self.current = current
        self.target = target


# Structural

class CategoryCycleError(CatalogError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, category_id: Any, chain: List[Any]):
        rendered = " -> ".join(str(item) for item in chain)
        super().__init__(f"Category parent chain loops back to {category_id}: {rendered}")
        self.category_id = category_id
        self.chain = chain


class CategoryDepthExceeded(CatalogError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, category_id: Any, max_depth: int):
        super().__init__(f"Category {category_id} is nested deeper than {max_depth} levels")
        self.category_id = category_id
        self.max_depth = max_depth


# Query composition

class ScopeConflict(CatalogError):
    status_code = HTTPStatus.BAD_REQUEST
