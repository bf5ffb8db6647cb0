"""Business records that reference products.

Order lines and cart items pin their product (``RESTRICT``), so a plain
delete of a referenced product fails at the database. Inventory log
entries keep their history with a nulled product reference.
"""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.types import DateTime

from inventory.db.base import Base


class OrderDetail(Base):
    __tablename__ = "order_details"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False, default=1)
    added_at = Column(DateTime(timezone=True), server_default=func.now())


class InventoryLog(Base):
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    change = Column(Integer, nullable=False)
    note = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
