from storefront.services.category_service import CategoryService
from storefront.services.product_service import ProductService
from storefront.services.review_service import ReviewService
