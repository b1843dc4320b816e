import os
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ["ENVIRONMENT"] = "development"

from storefront.db.base import Base
from storefront.db.session import create_db_engine
from storefront.models.category import Category
from storefront.models.product import Product, ProductStatus
from storefront.models.review import Review, ReviewStatus
from storefront.models.user import User


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_db_engine(f"sqlite:///{db_file.name}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_category(db_session: Session) -> Callable[..., Category]:
    counter = {"n": 0}

    def _make(name: str = None, parent: Category = None, **fields) -> Category:
        counter["n"] += 1
        name = name or f"Category {counter['n']}"
        category = Category(
            name=name,
            slug=fields.pop("slug", f"{name.lower().replace(' ', '-')}-{counter['n']}"),
            parent_id=parent.id if parent else None,
            **fields,
        )
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make


@pytest.fixture()
def make_product(db_session: Session, make_category) -> Callable[..., Product]:
    counter = {"n": 0}

    def _make(category: Category = None, **fields) -> Product:
        counter["n"] += 1
        n = counter["n"]
        category = category or make_category()
        values = {
            "name": f"Product {n}",
            "slug": f"product-{n}",
            "sku": f"SKU-{n:04d}",
            "description": "Test product",
            "price": Decimal("100.00"),
            "quantity": 10,
            "status": ProductStatus.ACTIVE,
        }
        values.update(fields)
        product = Product(category_id=category.id, **values)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(**fields) -> User:
        counter["n"] += 1
        values = {"email": f"reviewer{counter['n']}@example.com", "full_name": "Review User"}
        values.update(fields)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_review(db_session: Session, make_user) -> Callable[..., Review]:

    def _make(product: Product, rating: int, status: ReviewStatus = ReviewStatus.APPROVED, user: User = None, **fields) -> Review:
        user = user or make_user()
        review = Review(user_id=user.id, product_id=product.id, rating=rating, status=status, **fields)
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review

    return _make


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0)
