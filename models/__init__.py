# Import all models here to make them available
from .user import User
from .supplier import Supplier
from .product import Product

__all__ = ['User', 'Supplier', 'Product']
