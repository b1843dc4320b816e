from storefront.query.builder import QueryBuilder, Scope, Filter, Ordering
from storefront.query.category_scopes import ActiveCategories, RootCategories, ChildrenOf, CategoryOrder
from storefront.query.product_scopes import (
    ActiveProducts, InStock, OnSale, PriceBetween, InCategory, Search,
    PriceLowToHigh, PriceHighToLow, Newest, BestSelling, MostViewed, HighestRated,
)
from storefront.query.review_scopes import (
    ApprovedReviews, PendingReviews, VerifiedReviews, ForProduct, WithRating, MinRating,
    ReviewHighestRated, MostRecent,
)
