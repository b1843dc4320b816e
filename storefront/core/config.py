from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Storefront Catalog"

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Catalog rules
    NEW_PRODUCT_DAYS: int = 30
    CATEGORY_MAX_DEPTH: int = 64

    # Listings
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @field_validator("NEW_PRODUCT_DAYS", "CATEGORY_MAX_DEPTH", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE")
    @classmethod
    def must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_page_sizes(self):
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError("DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE")
        return self

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
