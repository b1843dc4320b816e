import threading
from datetime import datetime

import pytest
from sqlalchemy.orm import Session, sessionmaker

from storefront.models.category import Category
from storefront.models.product import Product
from storefront.services.product_service import ProductService


def test_decrement_quantity_happy_and_insufficient(db_session: Session, make_product):
    product = make_product(quantity=10, sales_count=0)

    assert ProductService.decrement_quantity(db_session, product, 5) is True
    assert product.quantity == 5
    assert product.sales_count == 5

    assert ProductService.decrement_quantity(db_session, product, 10) is False
    assert product.quantity == 5
    assert product.sales_count == 5


def test_insufficient_stock_keeps_pending_session_work(db_session: Session, make_product):
    product = make_product(quantity=1)
    db_session.add(Category(name="Pending", slug="pending-cat"))

    assert ProductService.decrement_quantity(db_session, product, 5) is False
    db_session.commit()

    assert db_session.query(Category).filter(Category.slug == "pending-cat").count() == 1
    assert product.quantity == 1


def test_decrement_quantity_defaults_to_one(db_session: Session, make_product):
    product = make_product(quantity=1)

    assert ProductService.decrement_quantity(db_session, product) is True
    assert product.quantity == 0
    assert product.in_stock is False
    assert ProductService.decrement_quantity(db_session, product) is False
    assert product.quantity == 0


def test_decrement_quantity_rejects_non_positive_amount(db_session: Session, make_product):
    product = make_product(quantity=3)

    with pytest.raises(ValueError):
        ProductService.decrement_quantity(db_session, product, 0)
    assert product.quantity == 3


def test_decrement_quantity_ignores_soft_deleted_product(db_session: Session, make_product):
    product = make_product(quantity=3, deleted_at=datetime(2026, 1, 1))

    assert ProductService.decrement_quantity(db_session, product, 1) is False
    assert product.quantity == 3


def test_decrement_quantity_uses_stored_quantity_not_stale_copy(
    db_session: Session, session_factory: sessionmaker, make_product
):
    product = make_product(quantity=4)

    other = session_factory()
    try:
        other_copy = other.get(Product, product.id)
        assert ProductService.decrement_quantity(other, other_copy, 3) is True
    finally:
        other.close()

    # product still holds quantity=4 in memory; the database has 1 left
    assert product.__dict__["quantity"] == 4
    assert ProductService.decrement_quantity(db_session, product, 3) is False
    assert product.quantity == 1


def test_concurrent_decrements_never_oversell(
    db_session: Session, session_factory: sessionmaker, make_product
):
    product = make_product(quantity=10, sales_count=0)
    product_id = product.id
    barrier = threading.Barrier(2)
    results = []
    errors = []

    def buy():
        db = session_factory()
        try:
            copy = db.get(Product, product_id)
            barrier.wait(timeout=10)
            results.append(ProductService.decrement_quantity(db, copy, 6))
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=buy) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert sorted(results) == [False, True]
    db_session.refresh(product)
    assert product.quantity == 4
    assert product.sales_count == 6


def test_increment_views(db_session: Session, make_product):
    product = make_product(views_count=0)

    ProductService.increment_views(db_session, product)
    ProductService.increment_views(db_session, product)

    assert product.views_count == 2
