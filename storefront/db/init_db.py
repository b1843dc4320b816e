from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from slugify import slugify
import structlog

from storefront.db.base import Base
from storefront.models.category import Category

logger = structlog.get_logger()

DEFAULT_CATEGORIES = [
    {"name": "Clothing", "description": "Apparel for every season", "sort_order": 1},
    {"name": "Electronics", "description": "Devices and accessories", "sort_order": 2},
    {"name": "Home & Kitchen", "description": "Everything for the home", "sort_order": 3},
]


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("tables_created", tables=sorted(Base.metadata.tables))


def init_db(db: Session) -> None:
    """Seed default root categories; existing slugs are left alone."""
    for cat_data in DEFAULT_CATEGORIES:
        slug = slugify(cat_data["name"])
        existing = db.query(Category).filter(Category.slug == slug).first()
        if not existing:
            db.add(Category(slug=slug, **cat_data))
            logger.info("category_created", name=cat_data["name"], slug=slug)

    db.commit()
    logger.info("database_initialized")


if __name__ == "__main__":
    from storefront.core.logging_config import configure_logging
    from storefront.db.session import SessionLocal, engine

    configure_logging()
    create_tables(engine)
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
