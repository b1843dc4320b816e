from storefront.db.base_class import Base


# IMPORT ALL MODELS HERE (THIS REGISTERS THEM WITH Base.metadata)
from storefront.models.user import User
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.review import Review
