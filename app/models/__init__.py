from app.models.database import Base, get_db
from app.models.user import User
from app.models.product import Product, ProductVisibilityTerm
from app.models.order import Order, OrderAddress, OrderItem, OrderNote

__all__ = [
    "Base",
    "get_db",
    "User",
    "Product",
    "ProductVisibilityTerm",
    "Order",
    "OrderAddress",
    "OrderItem",
    "OrderNote",
]
