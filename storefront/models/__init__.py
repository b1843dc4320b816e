from storefront.models.user import User
from storefront.models.category import Category
from storefront.models.product import Product, ProductStatus
from storefront.models.review import Review, ReviewStatus
