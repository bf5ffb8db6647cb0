"""Shared fixtures: in-memory SQLite database, seeded owners, API client."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from decimal import Decimal

# Settings are read at import time by inventory.db.session
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory.api.dependencies.db import get_session
from inventory.db.base import Base
from inventory.db.init_db import init_db
from inventory.db.models import CartItem, InventoryLog, OrderDetail, Product, User
from inventory.db.session import build_engine

OWNER_ID = 1
OTHER_OWNER_ID = 2


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    session.add_all(
        [
            User(id=OWNER_ID, username="alice", email="alice@example.com"),
            User(id=OTHER_OWNER_ID, username="bob", email="bob@example.com"),
        ]
    )
    session.commit()
    yield session
    session.close()


@pytest.fixture
def make_product(db: Session) -> Callable[..., Product]:
    counter = iter(range(1, 10_000))

    def _make(
        owner_id: int = OWNER_ID,
        *,
        name: str | None = None,
        category: str = "General",
        quantity: int = 20,
        unit_price: str = "9.99",
        description: str | None = None,
        image_path: str | None = None,
        active: bool = True,
    ) -> Product:
        n = next(counter)
        product = Product(
            owner_id=owner_id,
            product_code=f"P-{n:04d}",
            name=name or f"Product {n}",
            category=category,
            unit_price=Decimal(unit_price),
            quantity=quantity,
            description=description,
            image_path=image_path,
            active=active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def add_references(db: Session) -> Callable[..., None]:
    """Attach order lines, cart items, and log entries to a product."""

    def _add(product_id: int, orders: int = 0, carts: int = 0, logs: int = 0) -> None:
        for i in range(orders):
            db.add(OrderDetail(order_id=100 + i, product_id=product_id, quantity=1, unit_price=Decimal("9.99")))
        for i in range(carts):
            db.add(CartItem(user_id=OTHER_OWNER_ID, product_id=product_id, quantity=1 + i))
        for i in range(logs):
            db.add(InventoryLog(product_id=product_id, change=-1, note=f"sale {i}"))
        db.commit()

    return _add


@pytest.fixture
def client(session_factory: sessionmaker, db: Session) -> Generator[TestClient, None, None]:
    from inventory.main import app

    def _override_session() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = _override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"X-Owner-Id": str(OWNER_ID)}


@pytest.fixture
def other_owner_headers() -> dict[str, str]:
    return {"X-Owner-Id": str(OTHER_OWNER_ID)}
