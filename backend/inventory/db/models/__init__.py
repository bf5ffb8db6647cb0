"""Database models package."""
from inventory.db.models.dependents import CartItem, InventoryLog, OrderDetail
from inventory.db.models.product import Product
from inventory.db.models.user import User

__all__ = ["Product", "User", "OrderDetail", "CartItem", "InventoryLog"]
