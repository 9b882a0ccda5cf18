"""Tests for the product data access layer."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from products_api.config import get_settings
from products_api.database import Base
from products_api.schemas.product import ProductCreate, ProductUpdate
from products_api.services.product_service import (
    ProductService,
    ProductNotFoundError,
    StorageError
)


@pytest.fixture
def service(db_session):
    return ProductService(db_session)


def test_create_assigns_id(service):
    product = service.create_product(ProductCreate(name="Widget", price=Decimal("3.50")))

    assert product.id == 1
    assert product.name == "Widget"
    assert product.price == Decimal("3.50")


def test_create_then_get(service):
    created = service.create_product(ProductCreate(name="Gadget", price=Decimal("19.994")))

    fetched = service.get_product(created.id)

    assert fetched.id == created.id
    assert fetched.name == "Gadget"
    assert fetched.price == Decimal("19.99")


def test_get_missing_product(service):
    with pytest.raises(ProductNotFoundError):
        service.get_product(404)


def test_get_products_empty(service):
    assert service.get_products() == []


def test_get_products_offset_and_limit(service):
    for i in range(25):
        service.create_product(ProductCreate(name=f"Item {i}", price=Decimal(i)))

    assert [p.id for p in service.get_products()] == list(range(1, 11))
    assert [p.id for p in service.get_products(start=20, count=10)] == [21, 22, 23, 24, 25]
    assert [p.id for p in service.get_products(start=3, count=2)] == [4, 5]


def test_update_keeps_id(service):
    created = service.create_product(ProductCreate(name="Old", price=Decimal("1.00")))

    updated = service.update_product(
        created.id, ProductUpdate(name="New", price=Decimal("2.25"))
    )

    assert updated.id == created.id
    assert updated.name == "New"
    assert updated.price == Decimal("2.25")


def test_update_only_supplied_fields(service):
    created = service.create_product(ProductCreate(name="Keep me", price=Decimal("8.00")))

    updated = service.update_product(created.id, ProductUpdate(price=Decimal("9.00")))

    assert updated.name == "Keep me"
    assert updated.price == Decimal("9.00")


def test_update_without_changes_returns_product(service):
    created = service.create_product(ProductCreate(name="Same", price=Decimal("4.00")))

    assert service.update_product(created.id, ProductUpdate()).name == "Same"


def test_update_missing_product(service):
    with pytest.raises(ProductNotFoundError):
        service.update_product(9, ProductUpdate(name="nobody"))


def test_delete_then_get(service):
    created = service.create_product(ProductCreate(name="Doomed"))

    service.delete_product(created.id)

    with pytest.raises(ProductNotFoundError):
        service.get_product(created.id)


def test_delete_missing_product(service):
    with pytest.raises(ProductNotFoundError):
        service.delete_product(1)


def test_storage_error(service, db_session):
    Base.metadata.drop_all(bind=db_session.get_bind())

    with pytest.raises(StorageError, match="no such table"):
        service.get_products()

    with pytest.raises(StorageError):
        service.create_product(ProductCreate(name="Nowhere"))

    with pytest.raises(StorageError):
        service.delete_product(1)


def test_update_schema_distinguishes_missing_from_zero():
    assert ProductUpdate(price=0).changes() == {"price": Decimal("0.00")}
    assert ProductUpdate(name="x").changes() == {"name": "x"}
    assert ProductUpdate(name=None).changes() == {}


def test_default_page_size_comes_from_settings(db_session):
    assert ProductService(db_session).default_page_size == get_settings().DEFAULT_PAGE_SIZE
    assert ProductService(db_session, default_page_size=4).default_page_size == 4


def test_price_beyond_decimal_precision_is_validation_error():
    with pytest.raises(ValidationError):
        ProductCreate(name="huge", price=Decimal("1e30"))

    with pytest.raises(ValidationError):
        ProductUpdate(price=Decimal("1e30"))
