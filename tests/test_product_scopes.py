import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy.orm import Session

from storefront.core.exceptions import ScopeConflict
from storefront.models.product import Product, ProductStatus
from storefront.models.review import ReviewStatus
from storefront.query import (
    QueryBuilder, ActiveProducts, InStock, OnSale, PriceBetween, InCategory, Search,
    PriceLowToHigh, PriceHighToLow, Newest, BestSelling, MostViewed, HighestRated,
    ApprovedReviews, ActiveCategories,
)
from storefront.services.product_service import ProductService


def _ids(products):
    return [p.id for p in products]


def test_active_and_in_stock_compose_with_and(db_session: Session, make_product):
    match = make_product(status=ProductStatus.ACTIVE, quantity=3)
    make_product(status=ProductStatus.ACTIVE, quantity=0)
    make_product(status=ProductStatus.DRAFT, quantity=3)
    make_product(status=ProductStatus.OUT_OF_STOCK, quantity=0)

    products = QueryBuilder(Product).where(ActiveProducts(), InStock()).all(db_session)

    assert _ids(products) == [match.id]


def test_on_sale_requires_higher_compare_price(db_session: Session, make_product):
    sale = make_product(price=Decimal("80.00"), compare_price=Decimal("100.00"))
    make_product(price=Decimal("100.00"), compare_price=Decimal("100.00"))
    make_product(price=Decimal("100.00"), compare_price=None)

    assert _ids(QueryBuilder(Product).where(OnSale()).all(db_session)) == [sale.id]


def test_price_between_is_inclusive(db_session: Session, make_product):
    low = make_product(price=Decimal("10.00"))
    mid = make_product(price=Decimal("20.00"))
    make_product(price=Decimal("30.00"))

    products = QueryBuilder(Product).apply(PriceBetween(10, "20.00"), PriceLowToHigh()).all(db_session)

    assert _ids(products) == [low.id, mid.id]


def test_price_between_rejects_empty_range():
    with pytest.raises(ScopeConflict):
        PriceBetween(50, 10)


def test_in_category(db_session: Session, make_category, make_product):
    shoes = make_category("Shoes")
    boot = make_product(category=shoes)
    make_product()

    assert _ids(QueryBuilder(Product).where(InCategory(shoes.id)).all(db_session)) == [boot.id]


def test_search_matches_name_description_sku_and_tags(db_session: Session, make_product):
    by_name = make_product(name="Linen Shirt")
    by_description = make_product(description="Soft LINEN blend")
    by_sku = make_product(sku="LIN-42")
    by_tag = make_product(tags=["summer", "linen"])
    make_product(name="Wool Coat", description="Warm", tags=["winter"])

    products = QueryBuilder(Product).where(Search("linen")).all(db_session)
    assert set(_ids(products)) == {by_name.id, by_description.id, by_tag.id}

    assert _ids(QueryBuilder(Product).where(Search("lin-4")).all(db_session)) == [by_sku.id]


def test_search_matches_tag_elements_not_json_text(db_session: Session, make_product):
    make_product(tags=["a", "b"])
    cafe = make_product(tags=["café", "bistro"])
    make_product(tags=None)

    assert _ids(QueryBuilder(Product).where(Search('", "')).all(db_session)) == []
    assert _ids(QueryBuilder(Product).where(Search("[")).all(db_session)) == []
    assert _ids(QueryBuilder(Product).where(Search("café")).all(db_session)) == [cafe.id]
    assert _ids(QueryBuilder(Product).where(Search("BIST")).all(db_session)) == [cafe.id]


def test_search_treats_wildcards_literally(db_session: Session, make_product):
    percent = make_product(name="50% Off Tee")
    make_product(name="500 Thread Sheets")

    assert _ids(QueryBuilder(Product).where(Search("50%")).all(db_session)) == [percent.id]


def test_blank_search_matches_everything(db_session: Session, make_product):
    make_product()
    make_product()

    assert QueryBuilder(Product).where(Search("   ")).count(db_session) == 2


def test_orderings(db_session: Session, make_product):
    base = datetime(2026, 1, 1)
    a = make_product(price=Decimal("30.00"), sales_count=5, views_count=1, created_at=base)
    b = make_product(price=Decimal("10.00"), sales_count=9, views_count=7, created_at=base + timedelta(days=2))
    c = make_product(price=Decimal("20.00"), sales_count=1, views_count=3, created_at=base + timedelta(days=1))

    def ordered(scope):
        return _ids(QueryBuilder(Product).order_by(scope).all(db_session))

    assert ordered(PriceLowToHigh()) == [b.id, c.id, a.id]
    assert ordered(PriceHighToLow()) == [a.id, c.id, b.id]
    assert ordered(Newest()) == [b.id, c.id, a.id]
    assert ordered(BestSelling()) == [b.id, a.id, c.id]
    assert ordered(MostViewed()) == [b.id, c.id, a.id]


def test_highest_rated_puts_unreviewed_last(db_session: Session, make_product, make_review):
    unreviewed = make_product()
    middling = make_product()
    best = make_product()
    make_review(middling, 3)
    make_review(middling, 5, status=ReviewStatus.PENDING)
    make_review(best, 5)
    make_review(best, 4)

    products = QueryBuilder(Product).where(ActiveProducts()).order_by(HighestRated()).all(db_session)

    assert _ids(products) == [best.id, middling.id, unreviewed.id]


def test_highest_rated_composes_with_secondary_ordering(db_session: Session, make_product, make_review):
    cheap = make_product(price=Decimal("5.00"))
    pricey = make_product(price=Decimal("50.00"))
    make_review(cheap, 4)
    make_review(pricey, 4)

    products = QueryBuilder(Product).order_by(HighestRated(), PriceHighToLow()).all(db_session)

    assert _ids(products) == [pricey.id, cheap.id]


def test_conflicting_orderings_are_rejected():
    with pytest.raises(ScopeConflict):
        QueryBuilder(Product).order_by(PriceLowToHigh(), PriceHighToLow())


def test_scopes_must_match_the_model():
    with pytest.raises(ScopeConflict):
        QueryBuilder(Product).where(ApprovedReviews())
    with pytest.raises(ScopeConflict):
        QueryBuilder(Product).where(ActiveCategories())


def test_builder_is_immutable(db_session: Session, make_product):
    make_product(quantity=0)
    base = QueryBuilder(Product)
    narrowed = base.where(InStock())

    assert base.count(db_session) == 1
    assert narrowed.count(db_session) == 0


def test_soft_deleted_rows_need_with_trashed(db_session: Session, make_product):
    make_product()
    make_product(deleted_at=datetime(2026, 2, 1))

    assert QueryBuilder(Product).count(db_session) == 1
    assert QueryBuilder(Product).with_trashed().count(db_session) == 2
    assert QueryBuilder(Product).exists(db_session) is True


def test_list_products_paginates(db_session: Session, make_product):
    for price in ("1.00", "2.00", "3.00", "4.00", "5.00"):
        make_product(price=Decimal(price))

    items, total = ProductService.list_products(db_session, ActiveProducts(), PriceLowToHigh(), page=2, per_page=2)

    assert total == 5
    assert [str(p.price) for p in items] == ["3.00", "4.00"]
