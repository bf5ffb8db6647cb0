"""Database initialization script."""

import logging

from sqlalchemy.engine import Engine

from inventory.db import models  # noqa: F401  registers tables on Base.metadata
from inventory.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    if bind is None:
        from inventory.db.session import engine as bind

    Base.metadata.create_all(bind=bind)
    logger.info(f"Created tables: {sorted(Base.metadata.tables)}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
