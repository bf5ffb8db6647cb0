"""Owner-scoped repository tests."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from inventory.api.schemas.product import ProductCreate, ProductUpdate
from inventory.core.errors import (
    DuplicateProductCodeError,
    OwnerNotFoundError,
    ProductNotFoundError,
)
from inventory.services.deletion_policy import ProductDeletionPolicy
from inventory.services.product_repository import ProductRepository
from tests.conftest import OTHER_OWNER_ID, OWNER_ID


def _payload(**overrides) -> ProductCreate:
    data = {
        "product_code": "SKU-100",
        "name": "  Cordless Drill ",
        "category": "Tools",
        "unit_price": Decimal("79.50"),
        "quantity": 4,
        "description": "18V drill",
    }
    data.update(overrides)
    return ProductCreate(**data)


class TestCreate:
    def test_create_assigns_owner_and_defaults(self, db):
        product = ProductRepository(db).create(OWNER_ID, _payload())

        assert product.id is not None
        assert product.owner_id == OWNER_ID
        assert product.name == "Cordless Drill"
        assert product.active is True

    def test_product_code_unique_across_owners(self, db):
        repository = ProductRepository(db)
        repository.create(OWNER_ID, _payload())

        with pytest.raises(DuplicateProductCodeError):
            repository.create(OTHER_OWNER_ID, _payload(name="Other drill"))

    def test_unknown_owner_is_not_reported_as_duplicate(self, db):
        repository = ProductRepository(db)

        with pytest.raises(OwnerNotFoundError) as exc_info:
            repository.create(777, _payload(product_code="NEW-1"))

        assert exc_info.value.owner_id == 777
        assert "already exists" not in str(exc_info.value)
        assert repository.create(OWNER_ID, _payload(product_code="NEW-1")).product_code == "NEW-1"

    def test_code_taken_between_check_and_insert_is_duplicate(self, db, monkeypatch):
        repository = ProductRepository(db)
        repository.create(OTHER_OWNER_ID, _payload())
        real_code_taken = repository._code_taken
        checks = []

        def code_free_on_first_check(code):
            checks.append(code)
            return len(checks) > 1 and real_code_taken(code)

        monkeypatch.setattr(repository, "_code_taken", code_free_on_first_check)

        with pytest.raises(DuplicateProductCodeError):
            repository.create(OWNER_ID, _payload(name="Racing drill"))

    def test_other_integrity_failures_propagate(self, db):
        payload = ProductCreate.model_construct(
            product_code="BAD-PRICE",
            name="Free drill",
            category="Tools",
            unit_price=Decimal("-1.00"),
            quantity=1,
            description=None,
            image_path=None,
        )

        with pytest.raises(IntegrityError):
            ProductRepository(db).create(OWNER_ID, payload)

    def test_rejects_non_positive_price(self):
        with pytest.raises(ValueError):
            _payload(unit_price=Decimal("0"))

    def test_rejects_negative_quantity(self):
        with pytest.raises(ValueError):
            _payload(quantity=-1)


class TestFetch:
    def test_get_own_product(self, db, make_product):
        product_id = make_product(OWNER_ID, name="Hammer").id

        assert ProductRepository(db).get(product_id, OWNER_ID).name == "Hammer"

    def test_other_owner_gets_not_found(self, db, make_product):
        product_id = make_product(OWNER_ID).id

        with pytest.raises(ProductNotFoundError):
            ProductRepository(db).get(product_id, OTHER_OWNER_ID)
        assert ProductRepository(db).find(product_id, OTHER_OWNER_ID) is None

    def test_update_is_partial_and_scoped(self, db, make_product):
        product_id = make_product(OWNER_ID, name="Saw", quantity=3).id
        repository = ProductRepository(db)

        updated = repository.update(product_id, OWNER_ID, ProductUpdate(quantity=12))

        assert updated.quantity == 12
        assert updated.name == "Saw"
        with pytest.raises(ProductNotFoundError):
            repository.update(product_id, OTHER_OWNER_ID, ProductUpdate(name="Stolen"))

    def test_update_rejects_null_for_required_fields(self):
        for field in ("name", "category", "unit_price", "quantity"):
            with pytest.raises(ValueError):
                ProductUpdate(**{field: None})

    def test_update_null_clears_optional_text(self, db, make_product):
        product_id = make_product(description="old text").id

        updated = ProductRepository(db).update(product_id, OWNER_ID, ProductUpdate(description=None))

        assert updated.description is None
        assert updated.name.startswith("Product ")


class TestListing:
    def test_newest_first_and_owner_scoped(self, db, make_product):
        first = make_product(OWNER_ID).id
        second = make_product(OWNER_ID).id
        make_product(OTHER_OWNER_ID)

        products = ProductRepository(db).list_products(OWNER_ID)

        assert [p.id for p in products] == [second, first]

    def test_search_matches_name_or_description(self, db, make_product):
        by_name = make_product(name="Blue Paint").id
        by_description = make_product(name="Roller", description="for blue walls").id
        make_product(name="Nails")

        found = {p.id for p in ProductRepository(db).list_products(OWNER_ID, search="blue")}

        assert found == {by_name, by_description}

    def test_category_filter(self, db, make_product):
        tool = make_product(category="Tools").id
        make_product(category="Paint")

        products = ProductRepository(db).list_products(OWNER_ID, category="Tools")

        assert [p.id for p in products] == [tool]

    def test_inactive_hidden_unless_requested(self, db, make_product):
        hidden = make_product(active=False).id
        visible = make_product().id
        repository = ProductRepository(db)

        assert [p.id for p in repository.list_products(OWNER_ID)] == [visible]
        assert {p.id for p in repository.list_products(OWNER_ID, include_inactive=True)} == {
            hidden,
            visible,
        }

    def test_categories_distinct_and_sorted(self, db, make_product):
        make_product(category="Paint")
        make_product(category="Tools")
        make_product(category="Paint")
        make_product(OTHER_OWNER_ID, category="Garden")

        assert ProductRepository(db).list_categories(OWNER_ID) == ["Paint", "Tools"]

    def test_categories_skip_inactive_products(self, db, make_product):
        make_product(category="Paint")
        retired_id = make_product(category="Seasonal").id
        make_product(category="Archive", active=False)

        ProductDeletionPolicy(db).soft_delete(retired_id, OWNER_ID)

        assert ProductRepository(db).list_categories(OWNER_ID) == ["Paint"]


class TestStockReports:
    def test_counts_respect_threshold_and_owner(self, db, make_product):
        make_product(quantity=0)
        make_product(quantity=5)
        make_product(quantity=6)
        make_product(OTHER_OWNER_ID, quantity=1)
        repository = ProductRepository(db)

        assert repository.count_total(OWNER_ID) == 3
        assert repository.count_low_stock(OWNER_ID, 5) == 2
        assert repository.count_low_stock(OWNER_ID, 9) == 3

    def test_low_stock_list_scarcest_first(self, db, make_product):
        three = make_product(quantity=3).id
        zero = make_product(quantity=0).id
        make_product(quantity=50)

        products = ProductRepository(db).list_low_stock(OWNER_ID, 5)

        assert [p.id for p in products] == [zero, three]

    def test_soft_deleted_product_leaves_reports_but_stays_fetchable(self, db, make_product, add_references):
        product_id = make_product(OTHER_OWNER_ID, quantity=1, name="Rare Bolt").id
        add_references(product_id, orders=1)
        repository = ProductRepository(db)
        assert repository.count_low_stock(OTHER_OWNER_ID, 5) == 1

        ProductDeletionPolicy(db).soft_delete(product_id, OTHER_OWNER_ID)

        assert repository.list_low_stock(OTHER_OWNER_ID, 5) == []
        assert repository.count_low_stock(OTHER_OWNER_ID, 5) == 0
        assert repository.count_total(OTHER_OWNER_ID) == 0
        assert repository.list_products(OTHER_OWNER_ID) == []
        fetched = repository.get(product_id, OTHER_OWNER_ID)
        assert fetched.active is False
        assert fetched.name == "Rare Bolt"
        assert fetched.quantity == 1
