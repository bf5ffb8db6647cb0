"""Owner-scoped data access for products.

Every query filters on ``owner_id``; a product owned by someone else is
indistinguishable from one that does not exist.
"""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory.api.schemas.product import ProductCreate, ProductUpdate
from inventory.core.errors import (
    DuplicateProductCodeError,
    OwnerNotFoundError,
    ProductNotFoundError,
)
from inventory.db.models.product import Product
from inventory.db.models.user import User

logger = logging.getLogger(__name__)


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, owner_id: int):
        return select(Product).where(Product.owner_id == owner_id)

    def _code_taken(self, code: str) -> bool:
        existing = self.db.scalar(
            select(Product.id).where(Product.product_code == code)
        )
        return existing is not None

    def _owner_exists(self, owner_id: int) -> bool:
        return self.db.scalar(select(User.id).where(User.id == owner_id)) is not None

    def create(self, owner_id: int, payload: ProductCreate) -> Product:
        """Insert a product. ``product_code`` must be unique across all owners.

        Raises ``DuplicateProductCodeError`` when the code is in use and
        ``OwnerNotFoundError`` when ``owner_id`` has no user row. Any other
        integrity failure propagates as the original ``IntegrityError``.
        """
        code = payload.product_code.strip()
        if not self._owner_exists(owner_id):
            raise OwnerNotFoundError(owner_id)
        if self._code_taken(code):
            raise DuplicateProductCodeError(code)

        product = Product(
            owner_id=owner_id,
            product_code=code,
            name=payload.name.strip(),
            category=payload.category.strip(),
            unit_price=payload.unit_price,
            quantity=payload.quantity,
            description=payload.description.strip() if payload.description else None,
            image_path=payload.image_path,
            active=True,
        )
        self.db.add(product)
        try:
            self.db.commit()
        except IntegrityError as e:
            # A concurrent request may have taken the code or removed the owner
            self.db.rollback()
            if self._code_taken(code):
                raise DuplicateProductCodeError(code) from e
            if not self._owner_exists(owner_id):
                raise OwnerNotFoundError(owner_id) from e
            raise
        self.db.refresh(product)

        logger.info(f"Created product {product.id} ({code}) for owner {owner_id}")
        return product

    def find(self, product_id: int, owner_id: int) -> Product | None:
        return self.db.scalar(self._owned(owner_id).where(Product.id == product_id))

    def get(self, product_id: int, owner_id: int) -> Product:
        """Fetch a product regardless of its active flag."""
        product = self.find(product_id, owner_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def update(self, product_id: int, owner_id: int, payload: ProductUpdate) -> Product:
        """Apply the fields present in ``payload``."""
        product = self.get(product_id, owner_id)
        changes = payload.model_dump(exclude_unset=True)
        for field in ("name", "category", "description"):
            if isinstance(changes.get(field), str):
                changes[field] = changes[field].strip()
        for field, value in changes.items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)

        logger.info(f"Updated product {product_id} for owner {owner_id}")
        return product

    def list_products(
        self,
        owner_id: int,
        search: str | None = None,
        category: str | None = None,
        include_inactive: bool = False,
    ) -> Sequence[Product]:
        """Return products newest first, filtered by substring and category."""
        query = self._owned(owner_id)
        if not include_inactive:
            query = query.where(Product.active.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
            )
        if category:
            query = query.where(Product.category == category)
        query = query.order_by(Product.created_at.desc(), Product.id.desc())
        return self.db.scalars(query).all()

    def count_total(self, owner_id: int) -> int:
        return (
            self.db.scalar(
                select(func.count(Product.id)).where(
                    Product.owner_id == owner_id, Product.active.is_(True)
                )
            )
            or 0
        )

    def count_low_stock(self, owner_id: int, threshold: int) -> int:
        return (
            self.db.scalar(
                select(func.count(Product.id)).where(
                    Product.owner_id == owner_id,
                    Product.active.is_(True),
                    Product.quantity <= threshold,
                )
            )
            or 0
        )

    def list_low_stock(self, owner_id: int, threshold: int) -> Sequence[Product]:
        """Active products at or below ``threshold``, scarcest first."""
        query = (
            self._owned(owner_id)
            .where(Product.active.is_(True), Product.quantity <= threshold)
            .order_by(Product.quantity.asc(), Product.id.asc())
        )
        return self.db.scalars(query).all()

    def list_categories(self, owner_id: int) -> list[str]:
        """Distinct categories of the owner's active products."""
        query = (
            select(Product.category)
            .where(Product.owner_id == owner_id, Product.active.is_(True))
            .distinct()
            .order_by(Product.category)
        )
        return list(self.db.scalars(query).all())
