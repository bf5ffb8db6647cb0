"""Read-only inspection of tables that reference a product."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import column, func, inspect, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory.api.schemas.deletion import BlockingTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependentTable:
    name: str
    description: str
    product_column: str = "product_id"


# Checked in this order; reason strings and blocking_tables follow it.
DEPENDENT_TABLES: tuple[DependentTable, ...] = (
    DependentTable("order_details", "order records"),
    DependentTable("cart_items", "shopping cart items"),
    DependentTable("inventory_logs", "inventory log entries"),
)


class TableProbe(str, Enum):
    PRESENT = "present"
    MISSING = "missing"


class ReferenceChecker:
    """Count rows in known dependent tables that point at a product.

    Deployments differ in which dependent tables exist. A missing table is
    reported by ``probe`` and counts as zero references; any other failure
    while counting is logged and also counts as zero for that table.
    """

    def __init__(
        self,
        db: Session,
        dependent_tables: tuple[DependentTable, ...] = DEPENDENT_TABLES,
    ):
        self.db = db
        self.dependent_tables = dependent_tables

    def probe(self, table_name: str) -> TableProbe:
        """Report whether a dependent table exists in the connected schema."""
        inspector = inspect(self.db.connection())
        if inspector.has_table(table_name):
            return TableProbe.PRESENT
        return TableProbe.MISSING

    def count_references(self, dependent: DependentTable, product_id: int) -> int:
        """Count rows of ``dependent`` pointing at ``product_id``.

        Each count runs in its own savepoint, so a failed query leaves the
        surrounding transaction usable for the remaining tables and for the
        caller's delete.
        """
        dependent_table = table(dependent.name, column(dependent.product_column))
        query = (
            select(func.count())
            .select_from(dependent_table)
            .where(dependent_table.c[dependent.product_column] == product_id)
        )
        try:
            with self.db.begin_nested():
                if self.probe(dependent.name) is TableProbe.MISSING:
                    logger.debug(
                        f"Dependent table {dependent.name} not present, treating as no references"
                    )
                    return 0
                return self.db.scalar(query) or 0
        except SQLAlchemyError as e:
            logger.warning(
                f"Could not count {dependent.name} references for product {product_id}: {e}",
                exc_info=True,
            )
            return 0

    def check_references(self, product_id: int) -> list[BlockingTable]:
        """Return the dependent tables holding rows for ``product_id``.

        Only tables with a non-zero count are included, in the order of
        ``dependent_tables``.
        """
        blocking: list[BlockingTable] = []
        for dependent in self.dependent_tables:
            count = self.count_references(dependent, product_id)
            if count > 0:
                blocking.append(
                    BlockingTable(
                        table_name=dependent.name,
                        row_count=count,
                        description=dependent.description,
                    )
                )
        return blocking
