from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import bleach

from storefront.models.review import ReviewStatus


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    comment: Optional[str] = Field(None, max_length=1000)
    pros: Optional[List[str]] = None
    cons: Optional[List[str]] = None

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, value: Optional[str]) -> Optional[str]:
        return _clean(value)

    @field_validator("pros", "cons")
    @classmethod
    def sanitize_points(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        cleaned = [_clean(item) for item in value]
        return [item for item in cleaned if item]


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    product_id: int
    rating: int
    rating_stars: str
    comment: Optional[str]
    pros: Optional[List[str]]
    cons: Optional[List[str]]
    status: ReviewStatus
    verified_purchase: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
