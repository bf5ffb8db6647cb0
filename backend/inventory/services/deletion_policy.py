"""Product deletion workflow: safety checks, soft delete, and cascading delete.

Every public method returns a result object; store exceptions are logged
and translated here, never raised to the caller. Products that do not
exist and products owned by someone else are reported identically.

``safe_delete`` checks references before deleting, but another request can
add an order line between the check and the delete. The foreign key
constraints are what actually prevent the orphan; the ``IntegrityError``
branch turns that race into the same "use soft delete" guidance.
"""

from __future__ import annotations

import logging

from sqlalchemy import column, delete, func, select, table, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventory.api.schemas.deletion import (
    BlockingTable,
    DeletionCheck,
    DeletionOutcome,
    DeletionStatus,
)
from inventory.db.models.product import Product
from inventory.services.reference_checker import (
    DEPENDENT_TABLES,
    DependentTable,
    ReferenceChecker,
    TableProbe,
)

logger = logging.getLogger(__name__)

NOT_FOUND_OR_DENIED = "Product not found or access denied"
CHECK_FAILED = "An error occurred while checking delete safety."
DELETED = "Product deleted successfully."
ALREADY_DELETED = "Product not found or already deleted."
REFERENCED_ON_DELETE = (
    "Cannot delete product because it has associated records in other tables. "
    "Please use soft delete instead."
)
DELETE_FAILED = "Database error occurred while deleting product."
DEACTIVATED = "Product deactivated successfully."
DEACTIVATE_FAILED = "Database error occurred while deactivating product."
FORCE_DELETED = "Product and all related records deleted successfully."

# Force delete clears these before removing the product. Inventory log
# entries are kept; their foreign key nulls itself.
CASCADE_TABLES: tuple[DependentTable, ...] = tuple(
    dependent
    for dependent in DEPENDENT_TABLES
    if dependent.name in ("order_details", "cart_items")
)


def format_blocking_reason(blocking_tables: list[BlockingTable]) -> str:
    """Build the user-facing explanation for a refused hard delete."""
    parts = ", ".join(f"{b.row_count} {b.description}" for b in blocking_tables)
    return (
        f"Cannot delete product because it has associated records: {parts}. "
        "Consider using soft delete instead."
    )


class ProductDeletionPolicy:
    """Decide whether a product may be removed and carry out the removal."""

    def __init__(self, db: Session, checker: ReferenceChecker | None = None):
        self.db = db
        self.checker = checker or ReferenceChecker(db)

    def _owned(self, product_id: int, owner_id: int) -> bool:
        found = self.db.scalar(
            select(Product.id).where(
                Product.id == product_id, Product.owner_id == owner_id
            )
        )
        return found is not None

    def evaluate(self, product_id: int, owner_id: int) -> DeletionCheck:
        """Report whether ``product_id`` can be hard deleted by ``owner_id``."""
        try:
            if not self._owned(product_id, owner_id):
                return DeletionCheck(
                    can_delete=False,
                    reason=NOT_FOUND_OR_DENIED,
                    refusal=DeletionStatus.NOT_FOUND,
                )
        except SQLAlchemyError as e:
            logger.error(
                f"Database error checking product {product_id} for deletion: {e}",
                exc_info=True,
            )
            return DeletionCheck(
                can_delete=False, reason=CHECK_FAILED, refusal=DeletionStatus.ERROR
            )

        blocking = self.checker.check_references(product_id)
        if blocking:
            return DeletionCheck(
                can_delete=False,
                reason=format_blocking_reason(blocking),
                blocking_tables=blocking,
                refusal=DeletionStatus.BLOCKED,
            )
        return DeletionCheck(can_delete=True)

    def safe_delete(self, product_id: int, owner_id: int) -> DeletionOutcome:
        """Hard delete a product only when nothing references it."""
        check = self.evaluate(product_id, owner_id)
        if check.refusal is not None:
            return DeletionOutcome(
                status=check.refusal,
                message=check.reason,
                blocking_tables=check.blocking_tables,
            )

        try:
            result = self.db.execute(
                delete(Product).where(
                    Product.id == product_id, Product.owner_id == owner_id
                )
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"Product {product_id} gained references before delete: {e}"
            )
            return DeletionOutcome(
                status=DeletionStatus.CONSTRAINT_VIOLATION,
                message=REFERENCED_ON_DELETE,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Database error deleting product {product_id}: {e}", exc_info=True
            )
            return DeletionOutcome(status=DeletionStatus.ERROR, message=DELETE_FAILED)

        if result.rowcount == 0:
            return DeletionOutcome(
                status=DeletionStatus.NOT_FOUND, message=ALREADY_DELETED
            )

        logger.info(f"Deleted product {product_id} for owner {owner_id}")
        return DeletionOutcome(status=DeletionStatus.DELETED, message=DELETED)

    def soft_delete(self, product_id: int, owner_id: int) -> DeletionOutcome:
        """Mark a product inactive. Always allowed; nothing is removed."""
        try:
            result = self.db.execute(
                update(Product)
                .where(Product.id == product_id, Product.owner_id == owner_id)
                .values(active=False, updated_at=func.now())
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Database error deactivating product {product_id}: {e}", exc_info=True
            )
            return DeletionOutcome(
                status=DeletionStatus.ERROR, message=DEACTIVATE_FAILED
            )

        if result.rowcount == 0:
            return DeletionOutcome(
                status=DeletionStatus.NOT_FOUND, message=f"{NOT_FOUND_OR_DENIED}."
            )

        logger.info(f"Soft deleted product {product_id} for owner {owner_id}")
        return DeletionOutcome(status=DeletionStatus.DEACTIVATED, message=DEACTIVATED)

    def force_delete(self, product_id: int, owner_id: int) -> DeletionOutcome:
        """Delete a product together with its order lines and cart items.

        Runs as one transaction on the session: if the product is not owned
        by ``owner_id``, the dependent-row deletions already issued are rolled
        back too. Callers are expected to have obtained explicit confirmation.
        """
        removed: dict[str, int] = {}
        try:
            for dependent in CASCADE_TABLES:
                if self.checker.probe(dependent.name) is TableProbe.MISSING:
                    continue
                dependent_table = table(dependent.name, column(dependent.product_column))
                result = self.db.execute(
                    delete(dependent_table).where(
                        dependent_table.c[dependent.product_column] == product_id
                    )
                )
                removed[dependent.name] = result.rowcount

            result = self.db.execute(
                delete(Product).where(
                    Product.id == product_id, Product.owner_id == owner_id
                )
            )
            if result.rowcount == 0:
                self.db.rollback()
                return DeletionOutcome(
                    status=DeletionStatus.NOT_FOUND, message=f"{NOT_FOUND_OR_DENIED}."
                )

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(
                f"Integrity error force deleting product {product_id}: {e}", exc_info=True
            )
            return DeletionOutcome(
                status=DeletionStatus.CONSTRAINT_VIOLATION,
                message="Error: product is still referenced by other records.",
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Database error force deleting product {product_id}: {e}", exc_info=True
            )
            return DeletionOutcome(
                status=DeletionStatus.ERROR,
                message=f"Error: {DELETE_FAILED}",
            )

        logger.info(
            f"Force deleted product {product_id} for owner {owner_id}, "
            f"removed related rows: {removed}"
        )
        return DeletionOutcome(status=DeletionStatus.DELETED, message=FORCE_DELETED)
