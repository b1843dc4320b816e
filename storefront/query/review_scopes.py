from dataclasses import dataclass

from storefront.models.review import Review, ReviewStatus
from storefront.query.builder import Filter, Ordering


@dataclass(frozen=True)
class ApprovedReviews(Filter):
    model = Review

    def clause(self):
        return Review.status == ReviewStatus.APPROVED


@dataclass(frozen=True)
class PendingReviews(Filter):
    model = Review

    def clause(self):
        return Review.status == ReviewStatus.PENDING


@dataclass(frozen=True)
class VerifiedReviews(Filter):
    model = Review

    def clause(self):
        return Review.verified_purchase.is_(True)


@dataclass(frozen=True)
class ForProduct(Filter):
    product_id: int
    model = Review

    def clause(self):
        return Review.product_id == self.product_id


@dataclass(frozen=True)
class WithRating(Filter):
    rating: int
    model = Review

    def clause(self):
        return Review.rating == self.rating


@dataclass(frozen=True)
class MinRating(Filter):
    rating: int
    model = Review

    def clause(self):
        return Review.rating >= self.rating


@dataclass(frozen=True)
class ReviewHighestRated(Ordering):
    model = Review
    key = "rating"

    def columns(self):
        return [Review.rating.desc()]


@dataclass(frozen=True)
class MostRecent(Ordering):
    model = Review
    key = "created_at"

    def columns(self):
        return [Review.created_at.desc()]
