"""SQLAlchemy model for product owners (tenants)."""

from sqlalchemy import Column, Integer, String, func
from sqlalchemy.types import DateTime

from inventory.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
