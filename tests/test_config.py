import pytest
import structlog
from decimal import Decimal
from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from storefront.core.config import Settings, settings
from storefront.core.logging_config import configure_logging
from storefront.db.init_db import DEFAULT_CATEGORIES, init_db
from storefront.models.category import Category
from storefront.schemas.product import ProductCreate


def test_environment_is_normalized():
    assert Settings(ENVIRONMENT="  Production ").ENVIRONMENT == "production"


@pytest.mark.parametrize("field", ["NEW_PRODUCT_DAYS", "CATEGORY_MAX_DEPTH", "DEFAULT_PAGE_SIZE"])
def test_limits_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_default_page_size_cannot_exceed_max():
    with pytest.raises(ValidationError):
        Settings(DEFAULT_PAGE_SIZE=50, MAX_PAGE_SIZE=10)


def test_sqlite_engine_enforces_foreign_keys(engine: Engine):
    with engine.connect() as connection:
        assert connection.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1


def test_configure_logging_binds_project_context():
    structlog.contextvars.clear_contextvars()
    try:
        configure_logging()

        assert structlog.is_configured()
        context = structlog.contextvars.get_contextvars()
        assert context["project"] == settings.PROJECT_NAME
        assert context["environment"] == settings.ENVIRONMENT
    finally:
        structlog.contextvars.clear_contextvars()


def test_init_db_is_idempotent(db_session: Session):
    init_db(db_session)
    init_db(db_session)

    slugs = sorted(c.slug for c in db_session.query(Category).all())
    assert len(slugs) == len(DEFAULT_CATEGORIES)
    assert "home-kitchen" in slugs


def test_product_create_validates_money():
    with pytest.raises(ValidationError):
        ProductCreate(category_id=1, name="Free", sku="F-1", price=Decimal("0"))
    with pytest.raises(ValidationError):
        ProductCreate(category_id=1, name="Precise", sku="P-1", price=Decimal("1.005"))
    with pytest.raises(ValidationError):
        ProductCreate(category_id=1, name="Negative", sku="N-1", price=Decimal("5.00"), quantity=-1)
